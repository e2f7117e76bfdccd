from typing import Optional

from pydantic import BaseModel


class Owner(BaseModel):
    id: str
    email: Optional[str] = None
