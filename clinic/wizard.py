"""
The three-step patient registration wizard.

`RegistrationWizard` holds the draft typed by the staff: patient basics, the
clinical evaluation, and the procedures with their prices. Everything shown
as "calculated" (age, BMI, BMI band, step completion, totals) is a read-only
property recomputed from the draft fields, so it can never drift from them.

Submitting creates three backend resources in order: the patient, an
evaluation for that patient, and a procedure for that evaluation. The backend
offers no multi-resource transaction; when a later call fails the earlier
resources stay created, and the staff sees a generic error.
"""
# coldesthetic/clinic/wizard.py

import datetime
import logging
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from clinic.api import ApiError
from clinic.catalog import FAJA_ID, PIERNA_ID
from clinic.formatting import (
    compute_age,
    digits_only,
    format_price_input,
    parse_number,
    parse_price,
)
from clinic.services import procedure_payload

logger = logging.getLogger(__name__)

STEP_TITLES = ("Datos del paciente", "Evaluación clínica", "Procedimientos")
LAST_STEP = len(STEP_TITLES) - 1

INCOMPLETE_MESSAGE = "⚠️ Complete todos los pasos antes de guardar el registro."
SUBMIT_ERROR_MESSAGE = "No se pudo guardar el registro."
SUBMIT_SUCCESS_MESSAGE = "Registro guardado correctamente"

MIN_AGE = 14
MAX_AGE = 120

BIOLOGICAL_SEX_OPTIONS = ("Femenino", "Masculino", "Otro")

# Upper bounds are exclusive; anything from 40 up is the last band.
BMI_BANDS = (
    (16.0, "Delgadez severa (< 16.0)"),
    (17.0, "Delgadez moderada (16.0–16.9)"),
    (18.5, "Delgadez leve (17.0–18.4)"),
    (25.0, "Peso normal (18.5–24.9)"),
    (30.0, "Sobrepeso (25.0–29.9)"),
    (35.0, "Obesidad grado I (30.0–34.9)"),
    (40.0, "Obesidad grado II (35.0–39.9)"),
)
BMI_TOP_BAND = "Obesidad grado III (≥ 40)"

_FAJA_NOTE = re.compile(r"Faja talla:.*(\n\n)?")
_PIERNA_NOTE = re.compile(r"Pierna:.*(\n\n)?")
_FAJA_SIZE = re.compile(r"Faja talla:(.*)")


def compute_bmi(weight, height):
    """Returns weight / height² rounded to two decimals, or None without valid inputs."""
    if weight is None or height is None or weight <= 0 or height <= 0:
        return None
    bmi = Decimal(weight / (height * height)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(bmi)


def bmi_status(bmi):
    """Maps a BMI value to its band label."""
    if bmi is None:
        return ""
    for upper, label in BMI_BANDS:
        if bmi < upper:
            return label
    return BMI_TOP_BAND


def _prepend_note(notes, pattern, line):
    clean = pattern.sub("", notes, count=1)
    if not line:
        return clean
    if not clean:
        return line
    return f"{line}\n\n{clean}"


@dataclass
class SelectedProcedure:
    item_name: str
    price: str = ""


class RegistrationWizard:
    """Draft state and validation rules of the registration wizard."""

    def __init__(self, referrer_name="", today=datetime.date.today):
        self._today = today
        self.current_step = 0

        # Step 0
        self.first_name = ""
        self.last_name = ""
        self.date_of_birth = None
        self.cedula = ""
        self.cellphone = ""
        self.biological_sex = ""
        self.referrer_name = referrer_name

        # Step 1
        self.weight = ""
        self.height = ""
        self.medical_background = ""

        # Step 2
        self.items = []
        self.notes = ""

        self.is_submitting = False
        self.submit_error = None
        self.submit_success = None

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def age(self):
        return compute_age(self.date_of_birth, today=self._today())

    @property
    def age_out_of_range(self) -> bool:
        age = self.age
        return age is not None and not MIN_AGE <= age <= MAX_AGE

    @property
    def weight_kg(self):
        return parse_number(self.weight)

    @property
    def height_m(self):
        return parse_number(self.height)

    @property
    def bmi(self):
        return compute_bmi(self.weight_kg, self.height_m)

    @property
    def bmi_status(self) -> str:
        return bmi_status(self.bmi)

    @property
    def steps_completed(self):
        basics = all(
            str(value).strip()
            for value in (self.first_name, self.last_name, self.age if self.age is not None else "",
                          self.cellphone, self.biological_sex)
        )
        weight, height = self.weight_kg, self.height_m
        clinical = (
            weight is not None and weight > 0
            and height is not None and height > 0
            and bool(self.medical_background.strip())
        )
        procedures = bool(self.items) and bool(self.notes.strip())
        return (basics, clinical, procedures)

    @property
    def validation_error(self):
        if self.current_step == LAST_STEP and not self.steps_completed[LAST_STEP]:
            return INCOMPLETE_MESSAGE
        return None

    @property
    def selected_count(self) -> int:
        return len(self.items)

    @property
    def total(self) -> int:
        return sum(parse_price(item.price) for item in self.items)

    @property
    def total_display(self) -> str:
        return format_price_input(str(self.total)) or "0"

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def go_to(self, step):
        self.current_step = max(0, min(LAST_STEP, int(step)))

    def next_step(self):
        self.go_to(self.current_step + 1)

    def previous_step(self):
        self.go_to(self.current_step - 1)

    def mark_dirty(self):
        self.submit_error = None

    # ------------------------------------------------------------------
    # Procedures
    # ------------------------------------------------------------------
    def is_selected(self, item_name) -> bool:
        return any(item.item_name == item_name for item in self.items)

    def price_of(self, item_name) -> str:
        for item in self.items:
            if item.item_name == item_name:
                return item.price
        return ""

    def toggle_procedure(self, item_name):
        """Selects or deselects a catalog procedure by its label."""
        self.mark_dirty()
        if self.is_selected(item_name):
            self.items = [item for item in self.items if item.item_name != item_name]
            # detail lines only make sense while their item is selected
            if "Faja" in item_name:
                self.notes = _FAJA_NOTE.sub("", self.notes, count=1)
            if "Pierna" in item_name:
                self.notes = _PIERNA_NOTE.sub("", self.notes, count=1)
        else:
            self.items = self.items + [SelectedProcedure(item_name)]

    def set_price(self, item_name, raw):
        formatted = format_price_input(raw)
        for item in self.items:
            if item.item_name == item_name:
                item.price = formatted
        return formatted

    def set_faja_size(self, size):
        self.notes = _prepend_note(self.notes, _FAJA_NOTE, f"Faja talla: {size}")

    @property
    def faja_size(self):
        """The faja size recorded in the notes, or "" when none is."""
        match = _FAJA_SIZE.search(self.notes)
        return match.group(1).strip() if match else ""

    def set_pierna(self, interna, externa):
        if interna and externa:
            line = "Pierna: interna y externa"
        elif interna:
            line = "Pierna: interna"
        elif externa:
            line = "Pierna: externa"
        else:
            line = ""
        self.notes = _prepend_note(self.notes, _PIERNA_NOTE, line)

    @property
    def pierna_sides(self):
        """(interna, externa) as currently recorded in the notes."""
        both = "Pierna: interna y externa" in self.notes
        return (both or "Pierna: interna" in self.notes, both or "Pierna: externa" in self.notes)

    def price_enabled(self, procedure_id) -> bool:
        """Faja and Pierna need their detail recorded before a price can be typed."""
        if procedure_id == FAJA_ID:
            return "Faja talla:" in self.notes
        if procedure_id == PIERNA_ID:
            return any(self.pierna_sides)
        return True

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def patient_payload(self):
        return {
            "first_name": self.first_name.strip(),
            "last_name": self.last_name.strip(),
            "cedula": self.cedula.strip(),
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "age": self.age,
            "cellphone": digits_only(self.cellphone),
            "referrer_name": self.referrer_name,
            "biological_sex": self.biological_sex,
        }

    def procedure_items(self):
        return [(item.item_name, parse_price(item.price)) for item in self.items]

    def submit(self, service) -> bool:
        """Validates the draft and creates patient, evaluation and procedure.

        Args:
            service: A `ClinicService`.

        Returns:
            bool: True when all three resources were created.
        """
        if self.current_step != LAST_STEP:
            return False
        # Checked again here rather than trusting steps_completed.
        if not self.items or not self.notes.strip():
            logger.info("Registration blocked: procedures step incomplete")
            return False

        self.is_submitting = True
        self.submit_error = None
        self.submit_success = None
        stage = "patient"
        try:
            patient = service.create_patient(self.patient_payload())
            stage = "medical evaluation"
            evaluation = service.create_evaluation(
                patient.id, self.weight_kg, self.height_m, self.medical_background
            )
            stage = "procedure"
            service.create_procedure(
                procedure_payload(
                    self._today().isoformat(),
                    self.notes,
                    self.procedure_items(),
                    medical_evaluation_id=evaluation.id,
                )
            )
        except ApiError as exc:
            logger.error("Registration failed creating %s: %s", stage, exc.message)
            self.submit_error = SUBMIT_ERROR_MESSAGE
            return False
        finally:
            self.is_submitting = False

        logger.info("Registered patient %s with evaluation %s", patient.id, evaluation.id)
        self.submit_success = SUBMIT_SUCCESS_MESSAGE
        return True
