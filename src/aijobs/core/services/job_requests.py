"""Typed constructors for the job inputs the runner understands.

Each builder returns a JobRequest that can be passed to
`JobOrchestrator.submit`. Input keys match what the runner reads; the
orchestration core itself never looks inside them.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from aijobs.core.models.job import JobType


class JobRequest(BaseModel):
    job_type: JobType
    input: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


def auto_tag(
    wardrobe_item_id: str,
    image_ids: List[str],
    category: Optional[str],
    subcategory: Optional[str] = None,
) -> JobRequest:
    return JobRequest(
        job_type=JobType.auto_tag,
        input={
            "wardrobe_item_id": wardrobe_item_id,
            "image_ids": list(image_ids),
            "category": category or None,
            "subcategory": subcategory or None,
        },
    )


def product_shot(image_id: str, wardrobe_item_id: str) -> JobRequest:
    return JobRequest(
        job_type=JobType.product_shot,
        input={"image_id": image_id, "wardrobe_item_id": wardrobe_item_id},
    )


def headshot_generate(
    selfie_image_id: str,
    hair_style: Optional[str] = None,
    makeup_style: Optional[str] = None,
) -> JobRequest:
    return JobRequest(
        job_type=JobType.headshot_generate,
        input={
            "selfie_image_id": selfie_image_id,
            "hair_style": hair_style,
            "makeup_style": makeup_style,
        },
    )


def headshot_generate_with_prompt(
    selfie_image_id: str,
    prompt_text: str,
    output_folder: Optional[str] = None,
    skip_user_settings_update: Optional[bool] = None,
) -> JobRequest:
    """Headshot from a fully formed prompt (hair and make-up presets)."""
    return JobRequest(
        job_type=JobType.headshot_generate,
        input={
            "selfie_image_id": selfie_image_id,
            "prompt_text": prompt_text,
            "output_folder": output_folder,
            "skip_user_settings_update": skip_user_settings_update,
        },
    )


def body_shot_generate(body_photo_image_id: str, headshot_image_id: Optional[str] = None) -> JobRequest:
    """Studio model from a body photo.

    Without `headshot_image_id` the runner uses the owner's active headshot.
    """
    payload: Dict[str, Any] = {"body_photo_image_id": body_photo_image_id}
    if headshot_image_id:
        payload["headshot_image_id"] = headshot_image_id
    return JobRequest(job_type=JobType.body_shot_generate, input=payload)


def batch(image_id: str, wardrobe_item_id: str, image_ids: List[str]) -> JobRequest:
    """Product shot and auto tag in one job (the image is downloaded once)."""
    return JobRequest(
        job_type=JobType.batch,
        input={
            "imageId": image_id,
            "tasks": [str(JobType.product_shot), str(JobType.auto_tag)],
            "wardrobe_item_id": wardrobe_item_id,
            "image_ids": list(image_ids),
        },
    )


def wardrobe_item_render(item_id: str, source_image_id: str) -> JobRequest:
    return JobRequest(
        job_type=JobType.wardrobe_item_render,
        input={"item_id": item_id, "source_image_id": source_image_id},
    )


def wardrobe_item_tag(item_id: str, image_ids: List[str]) -> JobRequest:
    return JobRequest(
        job_type=JobType.wardrobe_item_tag,
        input={"item_id": item_id, "image_ids": list(image_ids)},
    )


def wardrobe_item_generate(item_id: str, source_image_id: str) -> JobRequest:
    """Image and text for a wardrobe item in a single job."""
    return JobRequest(
        job_type=JobType.wardrobe_item_generate,
        input={"item_id": item_id, "source_image_id": source_image_id},
    )
