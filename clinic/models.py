"""
This module defines the data models for the Coldesthetic back-office.

The backend owns every entity; these classes are the validated, read-only
copies the views work with. Each `from_api` constructor checks the keys the
views rely on and raises `ApiError` when a payload does not have them, so
malformed responses fail at the boundary instead of deep inside a page.
"""
# coldesthetic/clinic/models.py

from dataclasses import dataclass, field
from typing import Optional

from clinic.api import ApiError
from clinic.config import ROLE_ADMIN, ROLE_REMITENTE

ROLES = (ROLE_ADMIN, ROLE_REMITENTE)
USER_STATUSES = ("active", "inactive", "fired")

USER_STATUS_LABELS = {
    "active": "Activo",
    "inactive": "Inactivo",
    "fired": "Despedido",
}

EVALUATION_PENDING = "EN_ESPERA"
EVALUATION_CONFIRMED = "CONFIRMADO"
EVALUATION_CANCELED = "CANCELADO"

EVALUATION_STATUS_LABELS = {
    EVALUATION_PENDING: "En espera",
    EVALUATION_CONFIRMED: "Confirmado",
    EVALUATION_CANCELED: "Cancelado",
}


def _require(data, keys, entity):
    if not isinstance(data, dict):
        raise ApiError(f"Respuesta inválida del servidor ({entity}).", payload=data)
    missing = [key for key in keys if key not in data]
    if missing:
        raise ApiError(
            f"Respuesta inválida del servidor ({entity}): faltan {', '.join(missing)}.",
            payload=data,
        )


def _text(value):
    return value if isinstance(value, str) else ""


def _number(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class SessionUser:
    """The authenticated account, as reported by the session endpoint.

    Attributes:
        id (int): The backend identifier.
        name (str): Display name (brand or full name).
        email (str): Login e-mail.
        role (str): 'ADMIN' or 'REMITENTE'.
        status (str): 'active', 'inactive' or 'fired'.
    """

    id: int
    name: str
    email: str
    role: str
    status: str = "active"

    @classmethod
    def from_api(cls, data):
        _require(data, ("id", "name", "email", "role"), "usuario")
        role = str(data["role"]).upper()
        if role not in ROLES:
            raise ApiError(f"Rol desconocido: {data['role']}", payload=data)
        status = data.get("status") or "active"
        if status not in USER_STATUSES:
            raise ApiError(f"Estado de usuario desconocido: {status}", payload=data)
        return cls(id=data["id"], name=_text(data["name"]), email=_text(data["email"]), role=role, status=status)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class Patient:
    """A registered patient.

    Attributes:
        id (int): The backend identifier.
        first_name (str): Given name(s).
        last_name (str): Family name(s).
        cedula (str): National ID number.
        cellphone (str): Contact number.
        date_of_birth (str): ISO date, may be empty.
        biological_sex (str): 'Femenino', 'Masculino' or 'Otro'.
        created_at (str): ISO timestamp of registration.
    """

    id: int
    first_name: str = ""
    last_name: str = ""
    cedula: str = ""
    cellphone: str = ""
    date_of_birth: str = ""
    biological_sex: str = ""
    created_at: str = ""

    @classmethod
    def from_api(cls, data):
        _require(data, ("id",), "paciente")
        return cls(
            id=data["id"],
            first_name=_text(data.get("first_name")),
            last_name=_text(data.get("last_name")),
            cedula=_text(data.get("cedula")),
            cellphone=_text(data.get("cellphone")),
            date_of_birth=_text(data.get("date_of_birth")),
            biological_sex=_text(data.get("biological_sex")),
            created_at=_text(data.get("created_at")),
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class ProcedureItem:
    item_name: str
    price: float
    id: Optional[int] = None

    @classmethod
    def from_api(cls, data):
        _require(data, ("item_name",), "ítem de procedimiento")
        return cls(item_name=_text(data["item_name"]), price=_number(data.get("price")), id=data.get("id"))


@dataclass(frozen=True)
class Procedure:
    """A billable intervention attached to a medical evaluation."""

    id: int
    procedure_date: str = ""
    notes: str = ""
    items: tuple = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data):
        _require(data, ("id",), "procedimiento")
        return cls(
            id=data["id"],
            procedure_date=_text(data.get("procedure_date"))[:10],
            notes=_text(data.get("notes")),
            items=tuple(ProcedureItem.from_api(item) for item in data.get("items") or []),
        )

    @property
    def total(self) -> float:
        return sum(item.price for item in self.items)


@dataclass(frozen=True)
class MedicalEvaluation:
    """A clinical record: biometrics, background notes and its procedures.

    Attributes:
        id (int): The backend identifier.
        status (str): 'EN_ESPERA', 'CONFIRMADO' or 'CANCELADO'.
        weight (float): Kilograms.
        height (float): Metres.
        bmi (float | None): Body-mass index as stored by the backend.
        bmi_status (str): The BMI band label stored by the backend.
        medical_background (str): Relevant history.
        referrer_name (str): Who referred the patient.
        created_at (str): ISO timestamp.
        patient (Patient | None): Embedded patient, on detail responses.
        procedures (tuple[Procedure]): Embedded procedures, on detail responses.
    """

    id: int
    status: str = EVALUATION_PENDING
    weight: float = 0.0
    height: float = 0.0
    bmi: Optional[float] = None
    bmi_status: str = ""
    medical_background: str = ""
    referrer_name: str = ""
    created_at: str = ""
    patient: Optional[Patient] = None
    procedures: tuple = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data):
        _require(data, ("id",), "evaluación médica")
        status = data.get("status") or EVALUATION_PENDING
        if status not in EVALUATION_STATUS_LABELS:
            status = EVALUATION_PENDING
        patient = data.get("patient")
        bmi = data.get("bmi")
        return cls(
            id=data["id"],
            status=status,
            weight=_number(data.get("weight")),
            height=_number(data.get("height")),
            bmi=_number(bmi) if bmi is not None else None,
            bmi_status=_text(data.get("bmi_status")),
            medical_background=_text(data.get("medical_background")),
            referrer_name=_text(data.get("referrer_name")),
            created_at=_text(data.get("created_at")),
            patient=Patient.from_api(patient) if patient else None,
            procedures=tuple(Procedure.from_api(proc) for proc in data.get("procedures") or []),
        )

    @property
    def status_label(self) -> str:
        return EVALUATION_STATUS_LABELS.get(self.status, self.status)

    @property
    def total(self) -> float:
        return sum(procedure.total for procedure in self.procedures)


@dataclass(frozen=True)
class ClinicalImage:
    id: int
    title: str
    before_image: str
    after_image: str
    description: str = ""
    created_at: str = ""

    @classmethod
    def from_api(cls, data):
        _require(data, ("id", "title", "before_image", "after_image"), "imagen clínica")
        return cls(
            id=data["id"],
            title=_text(data["title"]),
            before_image=_text(data["before_image"]),
            after_image=_text(data["after_image"]),
            description=_text(data.get("description")),
            created_at=_text(data.get("created_at")),
        )


@dataclass(frozen=True)
class Remitente:
    """A referring-agent account managed by administrators."""

    id: int
    name: str
    email: str
    first_name: str = ""
    last_name: str = ""
    cellphone: str = ""
    role: str = ROLE_REMITENTE
    status: str = "active"
    created_at: str = ""

    @classmethod
    def from_api(cls, data):
        _require(data, ("id", "name", "email"), "remitente")
        status = data.get("status") or "active"
        if status not in USER_STATUSES:
            status = "inactive"
        return cls(
            id=data["id"],
            name=_text(data["name"]),
            email=_text(data["email"]),
            first_name=_text(data.get("first_name")),
            last_name=_text(data.get("last_name")),
            cellphone=_text(data.get("cellphone")),
            role=_text(data.get("role")) or ROLE_REMITENTE,
            status=status,
            created_at=_text(data.get("created_at")),
        )

    @property
    def status_label(self) -> str:
        return USER_STATUS_LABELS.get(self.status, self.status)
