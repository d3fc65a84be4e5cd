"""
Tabular views of backend data for the statistics page and CSV exports.

The statistics endpoints answer with loosely typed rows (amounts often come
as strings). These helpers coerce them into pandas DataFrames that the
Streamlit charts and tables consume directly.
"""
# coldesthetic/clinic/reports.py

import pandas as pd

from clinic.formatting import format_cop, format_date_es, month_abbreviation, weekday_short_es

SUMMARY_CARDS = (
    ("Ingresos Periodo Actual", "this_month_income", "income_variation", True),
    ("Nuevos Pacientes", "this_month_patients", "patients_variation", False),
    ("Regis. Clínicos Confirmados", "this_month_sessions", "sessions_variation", False),
    ("Procedimientos", "this_month_procedures", "procedures_variation", False),
    ("Balance Total", "total_income", None, True),
)

NO_PREVIOUS_MONTH = "Sin datos del mes anterior"


def _rows(data):
    return data if isinstance(data, list) else []


def _month_label(year, month):
    if pd.isna(month):
        return "—"
    label = month_abbreviation(month)
    return f"{label} {int(year)}" if pd.notna(year) else label


def summary_cards(data):
    """Turns the summary payload into (label, value, variation text) triples.

    "Balance Total" has no month-over-month comparison, so its variation is None.
    """
    data = data if isinstance(data, dict) else {}
    cards = []
    for label, value_key, variation_key, money in SUMMARY_CARDS:
        value = data.get(value_key)
        display = format_cop(value) if money else ("—" if value is None else str(value))
        if variation_key is None:
            variation = None
        elif data.get(variation_key) is None:
            variation = NO_PREVIOUS_MONTH
        else:
            variation = f"{data[variation_key]}% vs mes anterior"
        cards.append((label, display, variation))
    return cards


def monthly_income_frame(data):
    """Last twelve months of income, labelled like "Ene 2025"."""
    frame = pd.DataFrame(_rows(data)[-12:], columns=["year", "month", "total_income"])
    frame["total_income"] = pd.to_numeric(frame["total_income"], errors="coerce").fillna(0)
    frame["Mes"] = [_month_label(year, month) for year, month in zip(frame["year"], frame["month"])]
    return frame[["Mes", "total_income"]].rename(columns={"total_income": "Ingresos"})


def weekly_income_frame(data):
    frame = pd.DataFrame(_rows(data), columns=["date", "total_income"])
    frame["total_income"] = pd.to_numeric(frame["total_income"], errors="coerce").fillna(0)
    frame["Día"] = [weekday_short_es(value) if isinstance(value, str) else "—" for value in frame["date"]]
    return frame[["Día", "total_income"]].rename(columns={"total_income": "Ingresos"})


def income_by_procedure_frame(data, limit=10):
    frame = pd.DataFrame(_rows(data)[:limit], columns=["item_name", "total_income"])
    frame["total_income"] = pd.to_numeric(frame["total_income"], errors="coerce").fillna(0)
    return frame.rename(columns={"item_name": "Procedimiento", "total_income": "Ingresos"})


def referrer_frame(data):
    """Per-referrer counters with incomes formatted as pesos."""
    columns = {
        "referrer_name": "Médico",
        "total_patients_month": "Pacientes (mes)",
        "total_confirmed_month": "Confirmados (mes)",
        "total_canceled_month": "Cancelados (mes)",
        "confirmed_income_month": "Ingresos (mes)",
        "confirmed_income_year": "Ingresos (año)",
    }
    frame = pd.DataFrame(_rows(data), columns=list(columns))
    frame["referrer_name"] = frame["referrer_name"].fillna("—").replace("", "—")
    for key in ("confirmed_income_month", "confirmed_income_year"):
        frame[key] = frame[key].map(format_cop)
    return frame.rename(columns=columns)


def patients_frame(patients):
    rows = [
        {
            "Nombre": patient.full_name,
            "Cédula": patient.cedula,
            "Celular": patient.cellphone,
            "Fecha de nacimiento": patient.date_of_birth,
            "Registrado": format_date_es(patient.created_at) if patient.created_at else "",
        }
        for patient in patients
    ]
    return pd.DataFrame(rows, columns=["Nombre", "Cédula", "Celular", "Fecha de nacimiento", "Registrado"])


def evaluation_frame(evaluation):
    """One row per procedure item of an evaluation, for the record export."""
    patient = evaluation.patient
    rows = []
    for procedure in evaluation.procedures:
        for item in procedure.items:
            rows.append({
                "Paciente": patient.full_name if patient else "",
                "Estado": evaluation.status_label,
                "IMC": evaluation.bmi,
                "Fecha": procedure.procedure_date,
                "Procedimiento": item.item_name,
                "Precio": item.price,
            })
    return pd.DataFrame(rows, columns=["Paciente", "Estado", "IMC", "Fecha", "Procedimiento", "Precio"])


def procedures_frame(procedures):
    """One row per billed item across all procedures, newest first."""
    rows = [
        {
            "Fecha": procedure.procedure_date,
            "Procedimiento": item.item_name,
            "Precio": item.price,
            "Notas": procedure.notes,
        }
        for procedure in procedures
        for item in procedure.items
    ]
    frame = pd.DataFrame(rows, columns=["Fecha", "Procedimiento", "Precio", "Notas"])
    return frame.sort_values("Fecha", ascending=False, kind="stable").reset_index(drop=True)
