import logging
import uuid
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ...core.errors import PermissionError, ResourceNotFoundError, ValidationError
from ...models.domain import Customer, to_document, utc_now_iso
from ...models.permissions import Role
from ...utils.input_validation import InputValidator

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

COLLECTION = "customers"


class CustomerService:
    """Customers belong to a business. Admins see every business's customers."""

    def __init__(self, gateway: "DataGateway"):
        self._gateway = gateway

    @staticmethod
    def _can_see(current_user: Dict[str, Any], customer: Dict[str, Any]) -> bool:
        if current_user.get("role") == Role.ADMIN.value:
            return True
        business_id = current_user.get("business_id")
        return bool(business_id) and customer.get("business_id") == business_id

    @staticmethod
    def _can_manage(current_user: Dict[str, Any], customer: Dict[str, Any]) -> bool:
        role = current_user.get("role")
        if role == Role.ADMIN.value:
            return True
        return role == Role.BUSINESS.value and customer.get("business_id") == current_user.get("business_id")

    @staticmethod
    def _validate(data: Dict[str, Any]) -> None:
        if data.get("email") and not InputValidator.validate_email(data["email"].strip()):
            raise ValidationError("Customer email is not valid", field="email")
        for field in ("phone", "mobile"):
            if data.get(field) and not InputValidator.validate_phone(data[field]):
                raise ValidationError(f"Customer {field} is not valid", field=field)
        if data.get("postcode") and not InputValidator.validate_postcode(data["postcode"]):
            raise ValidationError("Customer postcode is not valid", field="postcode")

    async def list_customers(self, current_user: Dict[str, Any], search: str = "") -> List[Dict[str, Any]]:
        term = (search or "").strip().lower()
        customers = [c for c in await self._gateway.list_items(COLLECTION) if self._can_see(current_user, c)]
        if term:
            customers = [
                c for c in customers
                if term in (c.get("name") or "").lower()
                or term in (c.get("email") or "").lower()
                or term in (c.get("postcode") or "").lower()
            ]
        customers.sort(key=lambda c: (c.get("name") or "").lower())
        return customers

    async def get_customer(self, current_user: Dict[str, Any], customer_id: str) -> Dict[str, Any]:
        customer = await self._gateway.get_item(COLLECTION, customer_id)
        if customer is None or not self._can_see(current_user, customer):
            raise ResourceNotFoundError("Customer", customer_id)
        return customer

    async def create_customer(
        self,
        current_user: Dict[str, Any],
        data: Dict[str, Any],
        *,
        business_id: Optional[str] = None,
        for_job: bool = False,
    ) -> Dict[str, Any]:
        """
        Create a customer in the caller's business.

        Employees may only create customers as part of creating a job
        (``for_job=True``). Admins must name the business.
        """
        role = current_user.get("role")
        if role == Role.EMPLOYEE.value and not for_job:
            raise PermissionError("Employees can only add customers while creating a job")
        if role == Role.ADMIN.value:
            business_id = business_id or data.get("business_id")
            if not business_id:
                raise ValidationError("business_id is required", field="business_id")
        else:
            business_id = current_user.get("business_id")
            if not business_id:
                raise ValidationError("Your account is not linked to a business", field="business_id")

        self._validate(data)
        customer = Customer(
            id=f"CUST-{uuid.uuid4().hex[:8].upper()}",
            name=data["name"].strip(),
            email=(data.get("email") or "").strip().lower(),
            phone=data.get("phone") or "",
            mobile=data.get("mobile") or "",
            address=data.get("address") or "",
            postcode=(data.get("postcode") or "").strip().upper(),
            business_id=business_id,
            created_at=utc_now_iso(),
        )
        created = await self._gateway.create_item(COLLECTION, to_document(customer))
        logger.info("Customer %s created in business %s", created["id"], business_id)
        return created

    async def update_customer(
        self, current_user: Dict[str, Any], customer_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        customer = await self.get_customer(current_user, customer_id)
        if not self._can_manage(current_user, customer):
            raise PermissionError("You cannot edit this customer")
        self._validate(data)
        updates = {k: v for k, v in data.items() if k not in ("id", "business_id", "created_at")}
        if "postcode" in updates and updates["postcode"]:
            updates["postcode"] = updates["postcode"].strip().upper()
        updated = await self._gateway.update_item(COLLECTION, customer_id, updates)
        if updated is None:
            raise ResourceNotFoundError("Customer", customer_id)
        return updated

    async def delete_customer(self, current_user: Dict[str, Any], customer_id: str) -> None:
        customer = await self.get_customer(current_user, customer_id)
        if not self._can_manage(current_user, customer):
            raise PermissionError("You cannot delete this customer")
        await self._gateway.delete_item(COLLECTION, customer_id)
        logger.info("Customer %s deleted by %s", customer_id, current_user["id"])
