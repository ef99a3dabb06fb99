# ============================================================================
# Learner Schemas
# ============================================================================
from pydantic import BaseModel, Field
from typing import List

class LearnerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    grade: str = Field(..., min_length=1, max_length=50)

class AddLearnersRequest(BaseModel):
    learners: List[LearnerCreate] = Field(..., min_length=1)
