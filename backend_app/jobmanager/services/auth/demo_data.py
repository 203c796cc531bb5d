"""
Demo data seeded into an empty deployment.

Creates the three default accounts (platform admin, business manager and
field employee, all with password ``password``), the business they belong
to, a sample product and two AR models shared with that business.
"""
import logging
from typing import Dict, Any, List, TYPE_CHECKING

from ...core.errors import ItemAlreadyExistsError
from ...models.domain import (
    ARModel,
    Business,
    ConversionSettings,
    ModelStatus,
    Product,
    User,
    to_document,
)
from ...models.permissions import DEFAULT_PERMISSIONS, Role
from .authentication_service import hash_password

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password"
DEMO_BUSINESS_ID = "550e8400-e29b-41d4-a716-446655440001"
DEMO_ADMIN_ID = "550e8400-e29b-41d4-a716-446655440003"
DEMO_MANAGER_ID = "550e8400-e29b-41d4-a716-446655440004"
DEMO_EMPLOYEE_ID = "550e8400-e29b-41d4-a716-446655440005"


def demo_users() -> List[User]:
    hashed = hash_password(DEMO_PASSWORD)
    return [
        User(
            id=DEMO_ADMIN_ID,
            email="admin@platform.com",
            name="Platform Admin",
            role=Role.ADMIN,
            permissions=list(DEFAULT_PERMISSIONS[Role.ADMIN.value]),
            created_at="2024-01-01T00:00:00+00:00",
            email_verified=True,
            hashed_password=hashed,
        ),
        User(
            id=DEMO_MANAGER_ID,
            email="business@company.com",
            name="Business Manager",
            role=Role.BUSINESS,
            business_id=DEMO_BUSINESS_ID,
            parent_id=DEMO_ADMIN_ID,
            permissions=["manage_employees", "view_dashboard", "create_jobs"],
            created_at="2024-01-01T00:00:00+00:00",
            email_verified=True,
            created_by=DEMO_ADMIN_ID,
            hashed_password=hashed,
        ),
        User(
            id=DEMO_EMPLOYEE_ID,
            email="employee@company.com",
            name="Field Employee",
            role=Role.EMPLOYEE,
            business_id=DEMO_BUSINESS_ID,
            parent_id=DEMO_MANAGER_ID,
            permissions=["create_jobs", "manage_tasks", "capture_signatures"],
            created_at="2024-01-01T00:00:00+00:00",
            email_verified=True,
            created_by=DEMO_MANAGER_ID,
            hashed_password=hashed,
        ),
    ]


def demo_business() -> Business:
    return Business(
        id=DEMO_BUSINESS_ID,
        name="Demo Blinds Company",
        address="1 High Street, London",
        phone="+44 20 7946 0000",
        email="business@company.com",
        admin_id=DEMO_MANAGER_ID,
        created_at="2024-01-01T00:00:00+00:00",
        features=["job_management", "customers", "reports"],
        subscription="premium",
        vr_view_enabled=True,
    )


def demo_product() -> Product:
    return Product(
        id="product-roller-blind",
        name="Roller Blind",
        category="Blinds",
        description="Made-to-measure roller blind with blackout fabric",
        image="/images/products/roller-blind.jpg",
        model_3d="/models/roller-blind.glb",
        ar_model="/models/roller-blind.usdz",
        specifications=["Blackout fabric", "Chain operated", "Max width 3m"],
        price=89.0,
        created_at="2024-01-01T00:00:00+00:00",
    )


def demo_ar_models() -> List[ARModel]:
    return [
        ARModel(
            id="model-1",
            name="HVAC Unit Model",
            original_image="/images/models/hvac-unit.jpg",
            model_url="/models/hvac-unit.glb",
            thumbnail_url="/images/models/hvac-unit-thumb.jpg",
            settings=ConversionSettings(depth=60, quality="high", style="realistic"),
            status=ModelStatus.COMPLETED,
            progress=100,
            created_at="2024-01-15T10:30:00+00:00",
            file_size=2.5,
            business_access=[DEMO_BUSINESS_ID],
        ),
        ARModel(
            id="model-2",
            name="Electrical Panel 3D",
            original_image="/images/models/electrical-panel.jpg",
            model_url="/models/electrical-panel.glb",
            thumbnail_url="/images/models/electrical-panel-thumb.jpg",
            settings=ConversionSettings(depth=40, quality="medium", style="geometric", smoothing=False),
            status=ModelStatus.COMPLETED,
            progress=100,
            created_at="2024-01-16T14:20:00+00:00",
            file_size=1.8,
            business_access=[DEMO_BUSINESS_ID],
        ),
    ]


async def seed_demo_data(gateway: "DataGateway") -> Dict[str, int]:
    """
    Seed the demo records when the user collection is empty.

    Returns the number of documents created per collection (empty when
    users already exist).
    """
    if await gateway.list_items("users"):
        logger.info("Users present, skipping demo data")
        return {}

    batches = {
        "businesses": [demo_business()],
        "users": demo_users(),
        "products": [demo_product()],
        "ar_models": demo_ar_models(),
    }
    created: Dict[str, int] = {}
    for collection, entities in batches.items():
        count = 0
        for entity in entities:
            try:
                await gateway.create_item(collection, to_document(entity))
                count += 1
            except ItemAlreadyExistsError:
                logger.debug("Demo %s %s already present", collection, entity.id)
        created[collection] = count
    logger.info("Demo data seeded", extra={"seeded": created})
    return created
