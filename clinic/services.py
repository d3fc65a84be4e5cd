"""
This module provides the data access layer for the Coldesthetic back-office.

It defines the `ClinicService` class, which is responsible for:
- Reading patients, medical evaluations, procedures, clinical images,
  remitentes and statistics from the backend, parsed into `clinic.models`.
- Issuing every create, update, delete and status-change call.
- Keeping a short-lived, per-session read-through cache keyed by path and
  query, and invalidating the affected collections after each mutation so the
  next read refetches from the server.

Mutations are never applied locally first; the cache is only dropped once the
server has confirmed the change.
"""
# coldesthetic/clinic/services.py

import logging
import time

from clinic.api import ApiError, unwrap
from clinic.config import CACHE_TTL_SECONDS
from clinic.formatting import parse_amount
from clinic.models import USER_STATUSES, ClinicalImage, MedicalEvaluation, Patient, Procedure, Remitente

logger = logging.getLogger(__name__)

EVALUATION_ACTIONS = {
    "confirmar": "Valoración confirmada",
    "cancelar": "Valoración cancelada",
}

# action -> (button label, past participle used in the toast)
REMITENTE_ACTIONS = {
    "activar": ("Activar", "activado"),
    "inactivar": ("Inactivar", "inactivado"),
    "despedir": ("Despedir", "despedido"),
}

STATS_ENDPOINTS = {
    "summary": "stats/summary",
    "monthly_income": "stats/monthly-income",
    "weekly_income": "stats/weekly-income",
    "income_by_procedure": "stats/income-by-procedure",
    "referrers": "stats/referrers",
}

REMITENTE_REQUIRED_FIELDS = ("name", "first_name", "last_name", "email", "cellphone")


def _as_list(payload):
    data = unwrap(payload)
    return data if isinstance(data, list) else []


def available_remitente_actions(status):
    """Lists the status transitions offered for a remitente in a given status."""
    actions = []
    if status != "active":
        actions.append("activar")
    if status == "active":
        actions.append("inactivar")
    if status != "fired":
        actions.append("despedir")
    return actions


def count_remitentes_by_status(remitentes):
    """Counts remitentes per account status; every known status is present."""
    counts = dict.fromkeys(USER_STATUSES, 0)
    for remitente in remitentes:
        if remitente.status in counts:
            counts[remitente.status] += 1
    return counts


def validate_remitente_form(form, editing):
    """Checks a remitente form before it is sent.

    Args:
        form (dict): Field name to value.
        editing (bool): True when updating an existing remitente.

    Returns:
        str | None: The message to show, or None when the form is complete.
    """
    if any(not str(form.get(name) or "").strip() for name in REMITENTE_REQUIRED_FIELDS):
        return "Completa todos los campos obligatorios"
    if not editing and not form.get("password"):
        return "La contraseña es obligatoria para nuevos remitentes"
    return None


def procedure_payload(procedure_date, notes, items, medical_evaluation_id=None):
    """Builds the JSON body for creating or updating a procedure.

    Args:
        procedure_date (str): ISO date of the intervention.
        notes (str): Free-text notes.
        items (list[tuple[str, int | float]]): (item_name, price) pairs, prices already numeric.
        medical_evaluation_id (int, optional): Parent evaluation, required on create.
    """
    body = {
        "procedure_date": procedure_date,
        "notes": notes,
        "items": [{"item_name": name, "price": price} for name, price in items],
    }
    if medical_evaluation_id is not None:
        body = {"medical_evaluation_id": medical_evaluation_id, **body}
    return body


class ClinicService:
    """Backend operations for the clinic pages, with a per-session cache."""

    def __init__(self, api, ttl=CACHE_TTL_SECONDS, clock=time.monotonic):
        self.api = api
        self.ttl = ttl
        self._clock = clock
        self._cache = {}

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------
    def _read(self, path, params=None, fallback_error="No se pudieron cargar los datos."):
        key = (path, tuple(sorted((params or {}).items())))
        now = self._clock()
        cached = self._cache.get(key)
        if cached and cached[0] > now:
            return cached[1]
        payload = self.api.get(path, params=params, fallback_error=fallback_error)
        self._prune(now)
        self._cache[key] = (now + self.ttl, payload)
        return payload

    def _prune(self, now):
        for key in [key for key, (expires, _) in self._cache.items() if expires <= now]:
            del self._cache[key]

    def invalidate(self, *prefixes):
        """Drops cached reads whose path starts with any prefix (all when none given)."""
        if not prefixes:
            self._cache.clear()
            return
        for key in [key for key in self._cache if key[0].startswith(prefixes)]:
            del self._cache[key]

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------
    def list_patients(self, search=""):
        term = (search or "").strip()
        params = {"search": term} if term else None
        payload = self._read("patients", params, "No se pudo cargar el listado de pacientes.")
        return [Patient.from_api(row) for row in _as_list(payload)]

    def get_patient(self, patient_id):
        payload = self._read(f"patients/{patient_id}", fallback_error="Error al cargar paciente")
        return Patient.from_api(unwrap(payload))

    def create_patient(self, data):
        payload = self.api.post("patients", json=data, fallback_error="Error al crear paciente")
        self.invalidate("patients", "stats")
        return Patient.from_api(unwrap(payload))

    def update_patient(self, patient_id, data):
        payload = self.api.put(f"patients/{patient_id}", json=data, fallback_error="Error al actualizar paciente")
        self.invalidate("patients")
        return Patient.from_api(unwrap(payload))

    # ------------------------------------------------------------------
    # Medical evaluations
    # ------------------------------------------------------------------
    def list_patient_evaluations(self, patient_id):
        """Returns a patient's evaluations; a 404 means the patient has none yet."""
        try:
            payload = self._read(f"medical-evaluation/patient/{patient_id}", fallback_error="Error al cargar registros")
        except ApiError as exc:
            if exc.status == 404:
                return []
            raise
        return [MedicalEvaluation.from_api(row) for row in _as_list(payload)]

    def get_evaluation(self, evaluation_id):
        payload = self._read(f"medical-evaluations/{evaluation_id}", fallback_error="Error al cargar datos del paciente.")
        return MedicalEvaluation.from_api(unwrap(payload))

    def create_evaluation(self, patient_id, weight, height, medical_background):
        payload = self.api.post(
            "medical-evaluations",
            json={
                "patient_id": patient_id,
                "weight": weight,
                "height": height,
                "medical_background": medical_background,
            },
            fallback_error="Error al crear evaluación médica",
        )
        self.invalidate("medical-evaluation", "stats")
        return MedicalEvaluation.from_api(unwrap(payload))

    def update_evaluation(self, evaluation_id, weight, height, medical_background):
        self.api.put(
            f"medical-evaluations/{evaluation_id}",
            json={"weight": weight, "height": height, "medical_background": medical_background},
            fallback_error="Error al guardar",
        )
        self.invalidate("medical-evaluation")

    def change_evaluation_status(self, evaluation_id, action):
        if action not in EVALUATION_ACTIONS:
            raise ValueError(f"Unknown evaluation action: {action}")
        self.api.patch(f"medical-evaluations/{evaluation_id}/{action}", fallback_error="Error al cambiar estado")
        self.invalidate("medical-evaluation", "stats")
        return EVALUATION_ACTIONS[action]

    # ------------------------------------------------------------------
    # Procedures
    # ------------------------------------------------------------------
    def list_procedures(self):
        payload = self._read("procedures", fallback_error="No se pudieron cargar los procedimientos.")
        return [Procedure.from_api(row) for row in _as_list(payload)]

    def create_procedure(self, body):
        payload = self.api.post("procedures", json=body, fallback_error="Error al crear procedimientos")
        self.invalidate("procedures", "medical-evaluation", "stats")
        return unwrap(payload)

    def update_procedure(self, procedure_id, body):
        self.api.put(f"procedures/{procedure_id}", json=body, fallback_error="Error al guardar")
        self.invalidate("procedures", "medical-evaluation", "stats")

    # ------------------------------------------------------------------
    # Clinical images
    # ------------------------------------------------------------------
    def list_images(self):
        payload = self._read("clinical-images", fallback_error="Error al cargar las imágenes.")
        return [ClinicalImage.from_api(row) for row in _as_list(payload)]

    def save_image(self, title, description="", before_image=None, after_image=None, image_id=None):
        """Creates or updates a before/after pair as a multipart upload.

        Args:
            title (str): Required title.
            description (str): Optional description; omitted when blank.
            before_image: An uploaded file (name, bytes, content type) or None.
            after_image: An uploaded file or None.
            image_id (int, optional): The image to update; creates a new one when None.

        Raises:
            ValueError: When a required field is missing.
            ApiError: When the backend rejects the upload.
        """
        if not title or not title.strip():
            raise ValueError("Por favor completa todos los campos requeridos")
        if image_id is None and (before_image is None or after_image is None):
            raise ValueError("Por favor completa todos los campos requeridos")

        data = {"title": title.strip()}
        if description:
            data["description"] = description
        files = {}
        if before_image is not None:
            files["before_image"] = before_image
        if after_image is not None:
            files["after_image"] = after_image

        if image_id is None:
            self.api.request("POST", "clinical-images", data=data, files=files or None, fallback_error="Error al guardar")
        else:
            self.api.request("PUT", f"clinical-images/{image_id}", data=data, files=files or None,
                             fallback_error="Error al guardar")
        self.invalidate("clinical-images")

    def delete_image(self, image_id):
        self.api.delete(f"clinical-images/{image_id}", fallback_error="Error al eliminar")
        self.invalidate("clinical-images")

    # ------------------------------------------------------------------
    # Remitentes
    # ------------------------------------------------------------------
    def list_remitentes(self):
        payload = self._read("remitentes", fallback_error="Error al cargar remitentes.")
        return [Remitente.from_api(row) for row in _as_list(payload)]

    def save_remitente(self, form, remitente_id=None):
        """Creates a remitente, or updates one when `remitente_id` is given.

        A blank password is left out of the body so updates keep the current one.
        """
        body = {key: value for key, value in form.items() if key != "password"}
        if form.get("password"):
            body["password"] = form["password"]
        if remitente_id is None:
            self.api.post("remitentes", json=body, fallback_error="Error al guardar")
        else:
            self.api.put(f"remitentes/{remitente_id}", json=body, fallback_error="Error al guardar")
        self.invalidate("remitentes", "stats")

    def change_remitente_status(self, remitente_id, action):
        if action not in REMITENTE_ACTIONS:
            raise ValueError(f"Unknown remitente action: {action}")
        self.api.patch(f"remitentes/{remitente_id}/{action}", fallback_error="Error al cambiar estado")
        self.invalidate("remitentes", "stats")
        return f"Remitente {REMITENTE_ACTIONS[action][1]} correctamente"

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def stats(self, name):
        """Reads one of the statistics endpoints listed in `STATS_ENDPOINTS`."""
        payload = self._read(STATS_ENDPOINTS[name], fallback_error="Error al cargar estadísticas.")
        return unwrap(payload)


def clean_item_rows(rows):
    """Normalizes edited procedure rows into (item_name, price) pairs.

    Rows left completely blank are dropped; a row with a name but an
    unreadable price keeps None as its price so validation can reject it.
    """
    items = []
    for row in rows:
        name = str(row.get("item_name") or "").strip()
        raw_price = row.get("price")
        if not name and (raw_price is None or not str(raw_price).strip()):
            continue
        items.append((name, parse_amount(raw_price)))
    return items


def validate_record_form(procedure_date, notes, items, require_notes=True):
    """Checks a procedure form (new clinical record or procedure edit).

    Returns:
        str | None: The message to show, or None when the form can be sent.
    """
    if not procedure_date or not items:
        return "Completa la fecha y al menos un item"
    if require_notes and not (notes or "").strip():
        return "Completa todos los campos del procedimiento"
    if any(not name or price is None for name, price in items):
        return "Completa todos los campos del procedimiento"
    return None
