"""JOSE header of a compact JWT."""

from pydantic import BaseModel, ConfigDict

JWT_TYPE = "JWT"


class Header(BaseModel):
    """Protected header. Unknown members are ignored on decode."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    alg: str
    typ: str = JWT_TYPE
    kid: str | None = None
    enc: str | None = None
    cty: str | None = None

    @property
    def is_unsecured(self) -> bool:
        return self.alg.lower() == "none"
