"""
AR model library and the image-to-3D converter.

Conversion is simulated: a model is created in ``processing`` and a
background task walks it through the named stages before marking it
``completed`` with a placeholder ``.glb`` location.
"""
import asyncio
import logging
import random
import re
import time
import uuid
from typing import Any, Dict, List, Tuple, TYPE_CHECKING

from ...core.errors import ApplicationError, PermissionError, ResourceNotFoundError
from ...models.domain import ARModel, ModelStatus, to_document, utc_now_iso
from ...models.permissions import Role

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

COLLECTION = "ar_models"

CONVERSION_STAGES: Tuple[Tuple[int, str], ...] = (
    (20, "Analyzing image structure"),
    (40, "Generating depth map"),
    (60, "Creating 3D mesh"),
    (80, "Applying textures"),
    (100, "Finalizing model"),
)


def model_slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


class ARModelService:
    def __init__(self, gateway: "DataGateway", step_delay_seconds: float = 1.0):
        self._gateway = gateway
        self.step_delay_seconds = step_delay_seconds

    @staticmethod
    def _require_admin(current_user: Dict[str, Any]) -> None:
        if current_user.get("role") != Role.ADMIN.value:
            raise PermissionError("Only admins can manage AR models")

    @staticmethod
    def _visible_to(current_user: Dict[str, Any], model: Dict[str, Any]) -> bool:
        """Admins see the whole library; others see finished models shared with their business."""
        if current_user.get("role") == Role.ADMIN.value:
            return True
        business_id = current_user.get("business_id")
        return (
            bool(business_id)
            and business_id in (model.get("business_access") or [])
            and model.get("status") == ModelStatus.COMPLETED.value
        )

    async def list_models(self, current_user: Dict[str, Any]) -> List[Dict[str, Any]]:
        models = [m for m in await self._gateway.list_items(COLLECTION) if self._visible_to(current_user, m)]
        models.sort(key=lambda m: m.get("created_at") or "", reverse=True)
        return models

    async def _load(self, model_id: str) -> Dict[str, Any]:
        model = await self._gateway.get_item(COLLECTION, model_id)
        if model is None:
            raise ResourceNotFoundError("AR model", model_id)
        return model

    async def get_model(self, current_user: Dict[str, Any], model_id: str) -> Dict[str, Any]:
        """Models the caller cannot see are reported as not found."""
        model = await self._load(model_id)
        if not self._visible_to(current_user, model):
            raise ResourceNotFoundError("AR model", model_id)
        return model

    async def toggle_business_access(
        self, current_user: Dict[str, Any], model_id: str, business_id: str
    ) -> Dict[str, Any]:
        """Add the business to the model's access list, or remove it if present."""
        self._require_admin(current_user)
        model = await self._load(model_id)
        if await self._gateway.get_item("businesses", business_id) is None:
            raise ResourceNotFoundError("Business", business_id)
        access = list(model.get("business_access") or [])
        if business_id in access:
            access.remove(business_id)
        else:
            access.append(business_id)
        updated = await self._gateway.update_item(COLLECTION, model_id, {"business_access": access})
        logger.info("AR model %s access for %s toggled", model_id, business_id)
        return updated or {**model, "business_access": access}

    async def delete_model(self, current_user: Dict[str, Any], model_id: str) -> None:
        self._require_admin(current_user)
        if not await self._gateway.delete_item(COLLECTION, model_id):
            raise ResourceNotFoundError("AR model", model_id)

    async def start_conversion(self, current_user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        """Create the model record in ``processing``. The caller schedules ``run_conversion``."""
        self._require_admin(current_user)
        model = ARModel(
            id=f"model-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}",
            name=data["name"].strip(),
            original_image=data["image"],
            thumbnail_url=data["image"],
            settings=data.get("settings") or {},
            status=ModelStatus.PROCESSING,
            progress=0,
            stage="Queued",
            created_at=utc_now_iso(),
        )
        created = await self._gateway.create_item(COLLECTION, to_document(model))
        logger.info("AR conversion queued for %s (%s)", created["id"], created["name"])
        return created

    async def run_conversion(self, model_id: str) -> None:
        """Walk the conversion stages. Runs as a background task; failures mark the model failed."""
        try:
            model = await self._load(model_id)
            for progress, stage in CONVERSION_STAGES:
                await asyncio.sleep(self.step_delay_seconds)
                await self._gateway.update_item(COLLECTION, model_id, {"progress": progress, "stage": stage})
                logger.debug("AR conversion %s: %s (%d%%)", model_id, stage, progress)

            await self._gateway.update_item(
                COLLECTION,
                model_id,
                {
                    "status": ModelStatus.COMPLETED.value,
                    "model_url": f"/models/{model_slug(model['name'])}.glb",
                    "file_size": round(random.uniform(1.0, 4.0), 1),
                    "stage": None,
                },
            )
            logger.info("AR conversion %s completed", model_id)
        except Exception as exc:
            # Any failure must leave the model in a terminal state
            logger.error("AR conversion %s failed: %s", model_id, exc, exc_info=True)
            try:
                await self._gateway.update_item(
                    COLLECTION, model_id, {"status": ModelStatus.FAILED.value, "stage": None}
                )
            except ApplicationError:
                logger.error("Could not mark AR conversion %s as failed", model_id)
