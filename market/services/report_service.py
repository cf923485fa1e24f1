# market/services/report_service.py
from market.domain.errors import ValidationError
from market.domain.schemas import ReportType, Role, ShippingOrder, VendorReport
from market.services.api_client import ApiClient
from market.utils.logging import get_logger

logger = get_logger(__name__)


class ReportService:
    """Vendor complaints and the raw data behind sales/purchase reports."""

    def __init__(self, api: ApiClient):
        self.api = api

    def report_vendor(
        self,
        order: ShippingOrder,
        description: str,
        report_type: ReportType | str = ReportType.NON_DELIVERY,
    ) -> VendorReport | None:
        self.api.session.require_user()
        text = (description or "").strip()
        if not text:
            raise ValidationError("Please provide a description for the report")
        try:
            report_type = ReportType(report_type)
        except ValueError:
            raise ValidationError(f"Unknown report type: {report_type}")

        data = self.api.post(
            "/reports",
            {
                "vendor_id": order.vendor_id,
                "product_id": order.product_id,
                "report_type": report_type.value,
                "description": text,
            },
        )
        logger.info(f"Reported vendor {order.vendor_id} ({report_type.value})")
        return VendorReport.model_validate(data) if data else None

    def sales_report(self) -> dict:
        self.api.session.require_user(Role.VENDOR)
        return self.api.get("/reports/vendor/sales")

    def purchase_report(self) -> dict:
        self.api.session.require_user(Role.CUSTOMER)
        return self.api.get("/reports/customer/purchases")

    def vendor_report_count(self) -> int:
        self.api.session.require_user(Role.VENDOR)
        data = self.api.get("/vendor/reports/count")
        return int(data["count"]) if isinstance(data, dict) else int(data)
