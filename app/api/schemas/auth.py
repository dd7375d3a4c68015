from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    message: str
    user: str


class WhoAmI(BaseModel):
    authenticated: bool
    user: str | None = None
