from fastapi import APIRouter, Depends, Request

from app.api.v1.deps import require_plan, get_image_service
from app.core.rate_limit import AI_LIMIT, limiter
from app.models.enums import Plan
from app.models.user import User
from app.schemas.ai import GenerateImageIn
from app.services.image_generation import ImageGenerationService

router = APIRouter(prefix="/ai", tags=["ai"])

@router.post("/generate-image")
@limiter.limit(AI_LIMIT)
async def generate_image(
    request: Request,
    body: GenerateImageIn,
    user: User = Depends(require_plan(Plan.PREMIUM)),
    images: ImageGenerationService = Depends(get_image_service),
):
    """
    Generate one image (PREMIUM plan or higher).

    Error codes:
        - PLAN_REQUIRED (403): Caller's plan ranks below PREMIUM
        - RATE_LIMITED (429): Too many generations from this address
        - UPSTREAM_ERROR (502): Image API unavailable or failed
    """
    image_url = await images.generate(body.prompt, body.size)
    return {"success": True, "data": {"imageUrl": image_url}}
