# ============================================================================
# School Quote Request Schemas
# ============================================================================
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Union, Dict

from ebedmas.models.quote import QuoteStatus, SchoolType

class QuoteRequestCreate(BaseModel):
    # Contact
    name: str = Field(..., min_length=1)
    email: EmailStr
    phoneNumber: str = Field(..., min_length=5, max_length=30)
    position: Optional[str] = None

    # School
    schoolName: str = Field(..., min_length=1)
    address: Optional[str] = None
    townCity: Optional[str] = None
    lga: Optional[str] = None
    country: Optional[str] = None
    schoolType: SchoolType

    # Implementation
    subjects: Union[List[str], Dict[str, bool], str] = []
    studentYearLevels: Optional[str] = None
    numberOfStudents: int = Field(0, ge=0)
    numberOfTeachers: int = Field(0, ge=0)
    implementationPlan: str = ""
    marketingConsent: bool = False

    def to_record(self) -> dict:
        subjects = self.subjects
        if isinstance(subjects, dict):
            subjects = [name for name, selected in subjects.items() if selected]
        elif isinstance(subjects, str):
            subjects = [s.strip() for s in subjects.split(",") if s.strip()]

        return {
            "name": self.name,
            "email": self.email,
            "phone_number": self.phoneNumber,
            "position": self.position,
            "school_name": self.schoolName,
            "address": self.address,
            "town_city": self.townCity,
            "lga": self.lga,
            "country": self.country,
            "school_type": self.schoolType.value,
            "subjects": subjects,
            "student_year_levels": self.studentYearLevels,
            "number_of_students": self.numberOfStudents,
            "number_of_teachers": self.numberOfTeachers,
            "implementation_plan": self.implementationPlan,
            "marketing_consent": self.marketingConsent,
        }

class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus
    notes: Optional[str] = None
