"""Typed views over the stored documents.

Documents keep the field names of the seeded dataset (``id_cliente``,
``nro_poliza``, ``activo``...). Each model maps them onto English attribute
names through aliases and normalizes values on the way in, so flags are
real booleans, ids are strings and amounts are decimals no matter how the
source stored them.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from app.utils.coercion import (
    clean_text,
    coerce_key,
    to_bool,
    to_date,
    to_decimal,
    to_int,
)


class PolicyState(str, Enum):
    ACTIVE = "Activa"
    EXPIRED = "Vencida"
    SUSPENDED = "Suspendida"


class ClaimState(str, Enum):
    OPEN = "Abierto"
    UNDER_REVIEW = "En revisión"
    CLOSED = "Cerrado"


# Active-like synonyms found across the dataset; only the canonical label is written.
POLICY_STATE_SYNONYMS: Dict[str, PolicyState] = {
    "activa": PolicyState.ACTIVE,
    "vigente": PolicyState.ACTIVE,
    "active": PolicyState.ACTIVE,
    "current": PolicyState.ACTIVE,
    "vencida": PolicyState.EXPIRED,
    "expired": PolicyState.EXPIRED,
    "suspendida": PolicyState.SUSPENDED,
    "suspended": PolicyState.SUSPENDED,
}

CLAIM_STATE_SYNONYMS: Dict[str, ClaimState] = {
    "abierto": ClaimState.OPEN,
    "open": ClaimState.OPEN,
    "en revisión": ClaimState.UNDER_REVIEW,
    "en revision": ClaimState.UNDER_REVIEW,
    "under review": ClaimState.UNDER_REVIEW,
    "underreview": ClaimState.UNDER_REVIEW,
    "cerrado": ClaimState.CLOSED,
    "closed": ClaimState.CLOSED,
}


def normalize_policy_state(value: Any) -> Optional[PolicyState]:
    """Map a stored or requested policy state onto the enum; unknown values give None."""
    if isinstance(value, PolicyState):
        return value
    text = clean_text(value)
    if text is None:
        return None
    return POLICY_STATE_SYNONYMS.get(" ".join(text.lower().split()))


def normalize_claim_state(value: Any) -> Optional[ClaimState]:
    if isinstance(value, ClaimState):
        return value
    text = clean_text(value)
    if text is None:
        return None
    return CLAIM_STATE_SYNONYMS.get(" ".join(text.lower().split()))


def is_active_like(state: Optional[PolicyState]) -> bool:
    return state is PolicyState.ACTIVE


Key = Annotated[str, BeforeValidator(coerce_key)]
OptionalKey = Annotated[Optional[str], BeforeValidator(coerce_key)]
Flag = Annotated[bool, BeforeValidator(to_bool)]
Text = Annotated[Optional[str], BeforeValidator(clean_text)]
Amount = Annotated[Optional[Decimal], BeforeValidator(to_decimal)]
Day = Annotated[Optional[date], BeforeValidator(to_date)]
Year = Annotated[Optional[int], BeforeValidator(to_int)]
PolicyStateValue = Annotated[Optional[PolicyState], BeforeValidator(normalize_policy_state)]
ClaimStateValue = Annotated[Optional[ClaimState], BeforeValidator(normalize_claim_state)]


class DocumentModel(BaseModel):
    """Base for models decoded from and encoded to stored documents."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    collection: ClassVar[str]
    key_field: ClassVar[str] = "id"

    @property
    def key(self) -> str:
        return getattr(self, self.key_field)

    @classmethod
    def from_document(cls, document: Dict[str, Any]):
        return cls.model_validate(document)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Agent(DocumentModel):
    collection: ClassVar[str] = "agentes"

    id: Key = Field(alias="id_agente")
    name: Text = Field(default=None, alias="nombre")
    surname: Text = Field(default=None, alias="apellido")
    license_code: Text = Field(default=None, alias="matricula")
    phone: Text = Field(default=None, alias="telefono")
    email: Text = Field(default=None, alias="email")
    active: Flag = Field(default=False, alias="activo")


class Client(DocumentModel):
    collection: ClassVar[str] = "clientes"

    id: Key = Field(alias="id_cliente")
    name: Text = Field(default=None, alias="nombre")
    surname: Text = Field(default=None, alias="apellido")
    national_id: OptionalKey = Field(default=None, alias="dni")
    email: Text = Field(default=None, alias="email")
    phone: Text = Field(default=None, alias="telefono")
    address: Text = Field(default=None, alias="direccion")
    city: Text = Field(default=None, alias="ciudad")
    province: Text = Field(default=None, alias="provincia")
    active: Flag = Field(default=False, alias="activo")


class Vehicle(DocumentModel):
    collection: ClassVar[str] = "vehiculos"

    id: Key = Field(alias="id_vehiculo")
    client_id: OptionalKey = Field(default=None, alias="id_cliente")
    make: Text = Field(default=None, alias="marca")
    model: Text = Field(default=None, alias="modelo")
    year: Year = Field(default=None, alias="anio")
    plate: Text = Field(default=None, alias="patente")
    chassis_number: Text = Field(default=None, alias="nro_chasis")
    insured: Flag = Field(default=False, alias="asegurado")


class Policy(DocumentModel):
    collection: ClassVar[str] = "polizas"
    key_field: ClassVar[str] = "policy_number"

    policy_number: Key = Field(alias="nro_poliza")
    client_id: OptionalKey = Field(default=None, alias="id_cliente")
    agent_id: OptionalKey = Field(default=None, alias="id_agente")
    type: Text = Field(default=None, alias="tipo")
    start_date: Day = Field(default=None, alias="fecha_inicio")
    end_date: Day = Field(default=None, alias="fecha_fin")
    monthly_premium: Amount = Field(default=None, alias="prima_mensual")
    total_coverage: Amount = Field(default=None, alias="cobertura_total")
    state: PolicyStateValue = Field(default=None, alias="estado")

    @property
    def is_active_like(self) -> bool:
        return is_active_like(self.state)


class Claim(DocumentModel):
    collection: ClassVar[str] = "siniestros"

    id: Key = Field(alias="id_siniestro")
    policy_number: OptionalKey = Field(default=None, alias="nro_poliza")
    date: Day = Field(default=None, alias="fecha")
    type: Text = Field(default=None, alias="tipo")
    estimated_amount: Amount = Field(default=None, alias="monto_estimado")
    description: Text = Field(default=None, alias="descripcion")
    state: ClaimStateValue = Field(default=None, alias="estado")
