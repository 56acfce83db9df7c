from typing import Literal
from pydantic import BaseModel, Field

class GenerateImageIn(BaseModel):
    prompt: str = Field(min_length=1, max_length=4000)
    size: Literal["256x256", "512x512", "1024x1024", "1024x1792", "1792x1024"] = "1024x1024"
