# stratify_api/schemas/auth/auth.py
from pydantic import BaseModel, Field
from typing import Optional, Union
from datetime import datetime

class RequestOTPRequest(BaseModel):
    # Shape is checked by the service so every caller gets the same InvalidInput
    email: Optional[str] = Field("", description="Email address to send the code to")

class RequestOTPData(BaseModel):
    email: str
    expires_in: int = Field(..., description="Seconds until the code expires")

class RequestOTPResponse(BaseModel):
    success: bool
    message: str
    data: RequestOTPData

class VerifyOTPRequest(BaseModel):
    email: Optional[str] = Field("", description="Email address the code was sent to")
    code: Optional[Union[str, int]] = Field("", description="6-digit code from the email")

class UserResponse(BaseModel):
    id: str
    email: str
    created_at: datetime

class VerifyOTPData(BaseModel):
    token: str
    user: UserResponse
    expires_at: datetime

class VerifyOTPResponse(BaseModel):
    success: bool
    message: str
    data: VerifyOTPData

class MeData(BaseModel):
    user: UserResponse
    session_expires_at: datetime

class MeResponse(BaseModel):
    success: bool
    message: str
    data: MeData
