"""
Unit tests for the Coldesthetic back-office.

These tests focus on verifying individual functions and classes in isolation:
formatting helpers, the BMI rules, the registration wizard's derived values,
the authorization gates, the session store, the API client and the clinic
service, all against the `FakeHttp` backend from conftest.
"""
import datetime

import pytest
import requests

from clinic.api import CONNECTION_ERROR_MESSAGE, ApiError, extract_error_message, unwrap
from clinic.catalog import FAJA_ID, PIERNA_ID, PROCEDURE_GROUPS, PROCEDURES, group_count
from clinic.config import storage_url
from clinic.formatting import (
    compute_age,
    format_cellphone,
    format_cop,
    format_price_input,
    parse_amount,
    parse_number,
    parse_price,
    weekday_short_es,
)
from clinic.guards import RESTRICTED_ALERT, AuthGate, GateDecision, Render, RoleGate
from clinic.models import EVALUATION_PENDING, MedicalEvaluation, Remitente, SessionUser
from clinic.reports import (
    NO_PREVIOUS_MONTH,
    income_by_procedure_frame,
    monthly_income_frame,
    procedures_frame,
    referrer_frame,
    summary_cards,
)
from clinic.services import (
    available_remitente_actions,
    clean_item_rows,
    count_remitentes_by_status,
    procedure_payload,
    validate_record_form,
    validate_remitente_form,
)
from clinic.session import LOGIN_FAILED_MESSAGE, SessionStore
from clinic.wizard import BMI_TOP_BAND, INCOMPLETE_MESSAGE, bmi_status, compute_bmi

from conftest import ADMIN_USER, BASE_URL, REMITENTE_USER


def _session(user=None, auth_checked=True, is_logging_out=False):
    """Builds a session store in a given state without talking to a backend."""
    session = SessionStore(api=None)
    session.user = SessionUser.from_api(user) if user else None
    session.auth_checked = auth_checked
    session.loading = not auth_checked
    session.is_logging_out = is_logging_out
    return session


# Formatting
def test_price_input_groups_thousands():
    assert format_price_input("1500000") == "1.500.000"
    assert format_price_input("1.500.000x") == "1.500.000"
    assert format_price_input("abc") == ""
    assert parse_price("1.500.000") == 1500000
    assert parse_price("") == 0


def test_format_cop():
    assert format_cop(1500000) == "$ 1.500.000"
    assert format_cop("250000") == "$ 250.000"
    assert format_cop(None) == ""
    assert format_cop("n/a") == ""


def test_format_cellphone_groups_and_truncates():
    assert format_cellphone("3001234567") == "300 123 4567"
    assert format_cellphone("300-123-45678") == "300 123 4567"
    assert format_cellphone("300123") == "300 123"
    assert format_cellphone("30012") == "30012"


def test_parse_number_accepts_comma_decimal():
    assert parse_number("1,62") == pytest.approx(1.62)
    assert parse_number("65") == 65.0
    assert parse_number("") is None
    assert parse_number("abc") is None
    assert parse_number("inf") is None


def test_parse_amount():
    assert parse_amount("1.500.000") == 1500000.0
    assert parse_amount("150000,50") == pytest.approx(150000.5)
    assert parse_amount("$ 20.000") == 20000.0
    assert parse_amount("") is None
    assert parse_amount("gratis") is None


def test_weekday_short_es_tolerates_malformed_dates():
    assert weekday_short_es("2025-06-16") == "lun"
    assert weekday_short_es("2025-06-16T10:00:00Z") == "lun"
    assert weekday_short_es("16/06/2025") == "—"
    assert weekday_short_es("") == "—"


def test_compute_age_counts_completed_years():
    today = datetime.date(2025, 6, 15)
    assert compute_age(datetime.date(1990, 6, 15), today=today) == 35
    assert compute_age(datetime.date(1990, 6, 16), today=today) == 34
    assert compute_age("1990-01-01", today=today) == 35
    assert compute_age(datetime.date(2026, 1, 1), today=today) is None
    assert compute_age(None, today=today) is None


def test_storage_url_resolution():
    assert storage_url("https://cdn.example.com/a.jpg") == "https://cdn.example.com/a.jpg"
    assert storage_url("images/a.jpg").endswith("/storage/images/a.jpg")
    resolved = storage_url("storage/images/a.jpg")
    assert resolved.endswith("/storage/images/a.jpg")
    assert "/storage/storage/" not in resolved
    assert storage_url("") == ""


# BMI
def test_compute_bmi_rounds_to_two_decimals():
    assert compute_bmi(50, 1.6) == 19.53
    assert bmi_status(19.53) == "Peso normal (18.5–24.9)"
    assert compute_bmi(0, 1.6) is None
    assert compute_bmi(70, None) is None


def test_compute_bmi_rounds_ties_up():
    assert compute_bmi(80.5, 2) == 20.13
    assert compute_bmi(65, 1.62) == 24.77


def test_bmi_band_boundaries():
    assert bmi_status(15.99) == "Delgadez severa (< 16.0)"
    assert bmi_status(18.49) == "Delgadez leve (17.0–18.4)"
    assert bmi_status(18.5) == "Peso normal (18.5–24.9)"
    assert bmi_status(30) == "Obesidad grado I (30.0–34.9)"
    assert bmi_status(39.99) == "Obesidad grado II (35.0–39.9)"
    assert bmi_status(40) == BMI_TOP_BAND
    assert bmi_status(None) == ""


# Registration wizard
def test_wizard_derived_values(complete_wizard):
    assert complete_wizard.age == 35
    assert complete_wizard.bmi == 24.77
    assert complete_wizard.bmi_status == "Peso normal (18.5–24.9)"
    assert complete_wizard.steps_completed == (True, True, True)
    assert complete_wizard.validation_error is None


def test_wizard_steps_incomplete_by_default(wizard):
    assert wizard.steps_completed == (False, False, False)
    assert wizard.validation_error is None
    wizard.go_to(2)
    assert wizard.validation_error == INCOMPLETE_MESSAGE


def test_wizard_procedures_step_needs_notes(complete_wizard):
    complete_wizard.notes = "   "
    assert complete_wizard.steps_completed[2] is False
    assert complete_wizard.validation_error == INCOMPLETE_MESSAGE


def test_wizard_navigation_is_clamped(wizard):
    wizard.go_to(5)
    assert wizard.current_step == 2
    wizard.next_step()
    assert wizard.current_step == 2
    wizard.go_to(-3)
    assert wizard.current_step == 0
    wizard.previous_step()
    assert wizard.current_step == 0


def test_wizard_age_out_of_range_is_flagged(wizard):
    wizard.date_of_birth = datetime.date(2015, 1, 1)
    assert wizard.age == 10
    assert wizard.age_out_of_range is True
    wizard.date_of_birth = datetime.date(1980, 1, 1)
    assert wizard.age_out_of_range is False


def test_wizard_totals_and_payload(wizard):
    wizard.toggle_procedure("Drenaje linfático")
    wizard.toggle_procedure("Toxina botulínica")
    assert wizard.set_price("Drenaje linfático", "150000") == "150.000"
    wizard.set_price("Toxina botulínica", "1500000")
    assert wizard.selected_count == 2
    assert wizard.total == 1650000
    assert wizard.total_display == "1.650.000"
    assert wizard.procedure_items() == [("Drenaje linfático", 150000), ("Toxina botulínica", 1500000)]

    wizard.cellphone = "300 123 4567"
    assert wizard.patient_payload()["cellphone"] == "3001234567"


def test_wizard_faja_detail_controls_notes_and_price(wizard):
    faja = PROCEDURES[FAJA_ID]
    wizard.notes = "Control"
    wizard.toggle_procedure(faja)
    assert wizard.price_enabled(FAJA_ID) is False

    wizard.set_faja_size("M")
    assert wizard.notes == "Faja talla: M\n\nControl"
    wizard.set_faja_size("L")
    assert wizard.notes == "Faja talla: L\n\nControl"
    assert wizard.faja_size == "L"
    assert wizard.price_enabled(FAJA_ID) is True

    wizard.toggle_procedure(faja)
    assert wizard.notes == "Control"
    assert wizard.faja_size == ""
    assert not wizard.is_selected(faja)


def test_wizard_pierna_sides(wizard):
    wizard.toggle_procedure(PROCEDURES[PIERNA_ID])
    assert wizard.price_enabled(PIERNA_ID) is False
    wizard.set_pierna(True, False)
    assert wizard.notes == "Pierna: interna"
    assert wizard.pierna_sides == (True, False)
    wizard.set_pierna(True, True)
    assert wizard.notes == "Pierna: interna y externa"
    assert wizard.pierna_sides == (True, True)
    assert wizard.price_enabled(PIERNA_ID) is True
    wizard.set_pierna(False, False)
    assert wizard.notes == ""


def test_catalog_group_count():
    selected = [PROCEDURES["drenaje"], PROCEDURES[FAJA_ID], PROCEDURES["toxina"]]
    counts = {group_id: group_count(ids, selected) for group_id, _, ids in PROCEDURE_GROUPS}
    assert counts["postoperatorio"] == 2
    assert counts["facial"] == 1
    assert counts["lipolisis"] == 0


# Authorization gates
def test_auth_gate_renders_nothing_while_checking():
    decision = AuthGate().evaluate(_session(auth_checked=False))
    assert decision.render is Render.NOTHING
    assert decision.redirect is None
    assert decision.alert is None


def test_auth_gate_redirects_and_alerts_exactly_once():
    gate = AuthGate()
    session = _session()
    first = gate.evaluate(session)
    assert first.render is Render.RESTRICTED
    assert first.redirect == "home"
    assert first.alert == RESTRICTED_ALERT

    second = gate.evaluate(session)
    assert second.render is Render.RESTRICTED
    assert second.redirect is None
    assert second.alert is None


def test_auth_gate_alert_is_not_repeated_after_inputs_change():
    gate = AuthGate()
    session = _session()
    assert gate.evaluate(session).alert == RESTRICTED_ALERT
    session.user = SessionUser.from_api(ADMIN_USER)
    assert gate.evaluate(session).render is Render.CHILDREN
    session.user = None
    decision = gate.evaluate(session)
    assert decision.redirect == "home"
    assert decision.alert is None


def test_auth_gate_does_not_redirect_while_logging_out():
    decision = AuthGate().evaluate(_session(is_logging_out=True))
    assert decision.render is Render.CHILDREN
    assert decision.redirect is None
    assert decision.alert is None


def test_auth_gate_lets_authenticated_user_through():
    decision = AuthGate().evaluate(_session(user=REMITENTE_USER))
    assert decision == GateDecision(Render.CHILDREN)


def test_role_gate_sends_wrong_role_to_default_route_once():
    gate = RoleGate()
    session = _session(user=REMITENTE_USER)
    first = gate.evaluate(session, ["ADMIN"])
    assert first.render is Render.NOTHING
    assert first.redirect == "register-patient"
    assert first.alert == RESTRICTED_ALERT

    second = gate.evaluate(session, ["ADMIN"])
    assert second.render is Render.NOTHING
    assert second.redirect is None
    assert second.alert is None


def test_role_gate_allows_listed_role():
    decision = RoleGate().evaluate(_session(user=ADMIN_USER), ["ADMIN"])
    assert decision.render is Render.CHILDREN
    assert decision.redirect is None


def test_role_gate_without_user():
    assert RoleGate().evaluate(_session(auth_checked=False), ["ADMIN"]).redirect is None
    assert RoleGate().evaluate(_session(), ["ADMIN"]).redirect == "home"
    logging_out = RoleGate().evaluate(_session(is_logging_out=True), ["ADMIN"])
    assert logging_out.render is Render.NOTHING
    assert logging_out.redirect is None


# Models
def test_session_user_from_api_normalizes_role():
    user = SessionUser.from_api({**ADMIN_USER, "role": "admin"})
    assert user.role == "ADMIN"
    assert user.is_admin


@pytest.mark.parametrize("payload", [
    {**ADMIN_USER, "role": "DOCTOR"},
    {"id": 1, "name": "Sin correo", "role": "ADMIN"},
    None,
])
def test_session_user_rejects_malformed_payloads(payload):
    with pytest.raises(ApiError):
        SessionUser.from_api(payload)


def test_evaluation_from_api_defaults_unknown_status():
    evaluation = MedicalEvaluation.from_api({
        "id": 3,
        "status": "RARO",
        "procedures": [
            {"id": 1, "procedure_date": "2025-06-01T10:00:00Z",
             "items": [{"item_name": "Drenaje", "price": "150000"}, {"item_name": "Faja", "price": 80000}]},
        ],
    })
    assert evaluation.status == EVALUATION_PENDING
    assert evaluation.procedures[0].procedure_date == "2025-06-01"
    assert evaluation.total == 230000


def test_remitente_status_label():
    remitente = Remitente.from_api({"id": 2, "name": "Dr. Ruiz", "email": "r@c.co", "status": "fired"})
    assert remitente.status_label == "Despedido"


# API client
def test_extract_error_message_prefers_message_then_errors():
    assert extract_error_message({"message": "Credenciales inválidas"}, "x") == "Credenciales inválidas"
    errors = {"errors": {"email": ["El correo ya existe."], "cellphone": ["Celular inválido."]}}
    assert extract_error_message(errors, "x") == "El correo ya existe. Celular inválido."
    assert extract_error_message(None, "Error al guardar") == "Error al guardar"
    assert unwrap({"data": [1]}) == [1]
    assert unwrap([1]) == [1]


def test_api_client_builds_urls(api, http):
    assert api.url("patients") == f"{BASE_URL}/api/v1/patients"
    assert api.url("/sanctum/csrf-cookie") == f"{BASE_URL}/sanctum/csrf-cookie"
    assert http.headers["Accept"] == "application/json"


def test_api_client_echoes_decoded_csrf_cookie(api, http):
    http.add("GET", "patients", {"data": []})
    api.get("patients")
    assert "X-XSRF-TOKEN" not in http.calls[-1]["headers"]

    http.cookies["XSRF-TOKEN"] = "abc%3D%3D"
    api.get("patients")
    assert http.calls[-1]["headers"]["X-XSRF-TOKEN"] == "abc=="


def test_api_client_raises_api_error_with_status(api, http):
    http.add("POST", "patients", {"errors": {"cedula": ["La cédula ya existe."]}}, status=422)
    with pytest.raises(ApiError) as excinfo:
        api.post("patients", json={}, fallback_error="Error al crear paciente")
    assert excinfo.value.status == 422
    assert excinfo.value.message == "La cédula ya existe."


def test_api_client_maps_connection_errors(api, http):
    http.add("GET", "me", raises=requests.ConnectionError("refused"))
    with pytest.raises(ApiError) as excinfo:
        api.get("me")
    assert excinfo.value.status is None
    assert excinfo.value.message == CONNECTION_ERROR_MESSAGE


def test_api_client_returns_none_for_empty_body(api, http):
    http.add("DELETE", "clinical-images/4", status=204)
    assert api.delete("clinical-images/4") is None


# Session store
def test_check_session_sets_user(session_store, http):
    http.add("GET", "me", {"data": ADMIN_USER})
    session_store.check_session()
    assert session_store.user.role == "ADMIN"
    assert session_store.auth_checked is True
    assert session_store.loading is False


@pytest.mark.parametrize("route", [
    {"status": 401, "payload": {"message": "Unauthenticated."}},
    {"raises": requests.ConnectionError("down")},
    {"payload": {"data": {"id": 1}}},
])
def test_check_session_failures_end_unauthenticated(session_store, http, route):
    http.add("GET", "me", **route)
    session_store.check_session()
    assert session_store.user is None
    assert session_store.auth_checked is True
    assert session_store.is_anonymous


def test_login_fetches_csrf_cookie_first(session_store, http):
    http.add("GET", "/sanctum/csrf-cookie", status=204, cookies={"XSRF-TOKEN": "tok%3Den"})
    http.add("POST", "login", {"user": REMITENTE_USER})

    assert session_store.login("ruiz@correo.co", "secreto") is None
    assert http.paths() == ["/sanctum/csrf-cookie", "login"]
    login_call = http.calls[1]
    assert login_call["headers"]["X-XSRF-TOKEN"] == "tok=en"
    assert login_call["json"] == {"email": "ruiz@correo.co", "password": "secreto"}
    assert session_store.user.role == "REMITENTE"
    assert session_store.auth_checked is True


@pytest.mark.parametrize("payload, expected", [
    ({"message": "Credenciales inválidas"}, "Credenciales inválidas"),
    ({}, LOGIN_FAILED_MESSAGE),
])
def test_login_failure_messages(session_store, http, payload, expected):
    http.add("GET", "/sanctum/csrf-cookie", status=204)
    http.add("POST", "login", payload, status=422)
    assert session_store.login("a@b.co", "x") == expected
    assert session_store.user is None


def test_login_connection_error(session_store, http):
    http.add("GET", "/sanctum/csrf-cookie", raises=requests.ConnectionError("down"))
    assert session_store.login("a@b.co", "x") == CONNECTION_ERROR_MESSAGE
    assert http.paths() == ["/sanctum/csrf-cookie"]


def test_logout_clears_user_even_when_backend_fails(session_store, http):
    session_store.set_user(SessionUser.from_api(ADMIN_USER))
    http.add("POST", "logout", {"message": "Server Error"}, status=500)
    session_store.logout()
    assert session_store.user is None
    assert session_store.is_logging_out is True


# Clinic service
def test_list_patients_sends_search_only_when_given(service, http):
    http.add("GET", "patients", {"data": [{"id": 1, "first_name": "Ana", "last_name": "Gómez"}]})
    patients = service.list_patients("  ana ")
    assert patients[0].full_name == "Ana Gómez"
    assert http.calls[-1]["params"] == {"search": "ana"}

    service.list_patients("   ")
    assert http.calls[-1]["params"] is None


def test_reads_are_cached_until_ttl_or_mutation(service, http, clock):
    http.add("GET", "patients", {"data": []})
    http.add("POST", "patients", {"data": {"id": 9}})

    service.list_patients()
    service.list_patients()
    assert http.paths("GET") == ["patients"]

    clock.now += 31
    service.list_patients()
    assert http.paths("GET") == ["patients", "patients"]

    service.create_patient({"first_name": "Ana"})
    service.list_patients()
    assert http.paths("GET") == ["patients", "patients", "patients"]


def test_expired_reads_are_dropped_from_the_cache(service, http, clock):
    http.add("GET", "patients", {"data": []})

    for term in ("ana", "luis", "maria"):
        service.list_patients(term)
    assert len(service._cache) == 3

    clock.now += 31
    service.list_patients("pedro")
    assert list(service._cache) == [("patients", (("search", "pedro"),))]


def test_patient_evaluations_not_found_means_empty(service, http):
    assert service.list_patient_evaluations(3) == []

    http.add("GET", "medical-evaluation/patient/4", {"message": "Boom"}, status=500)
    with pytest.raises(ApiError):
        service.list_patient_evaluations(4)


def test_change_evaluation_status(service, http):
    http.add("PATCH", "medical-evaluations/5/confirmar", {"data": {"id": 5}})
    assert service.change_evaluation_status(5, "confirmar") == "Valoración confirmada"
    with pytest.raises(ValueError):
        service.change_evaluation_status(5, "borrar")


def test_save_image_requires_both_images_on_create(service, http):
    with pytest.raises(ValueError):
        service.save_image("Abdomen", before_image=("a.jpg", b"1", "image/jpeg"))
    with pytest.raises(ValueError):
        service.save_image("  ", before_image=("a.jpg", b"1", "image/jpeg"), after_image=("b.jpg", b"2", "image/jpeg"))
    assert http.calls == []


def test_save_image_update_sends_only_changed_parts(service, http):
    http.add("PUT", "clinical-images/8", {"data": {}})
    service.save_image("Abdomen 3 meses", image_id=8)
    call = http.calls[-1]
    assert call["data"] == {"title": "Abdomen 3 meses"}
    assert call["files"] is None


def test_save_remitente_omits_blank_password(service, http):
    http.add("PUT", "remitentes/2", {"data": {}})
    form = {"name": "Dr. Ruiz", "first_name": "Luis", "last_name": "Ruiz", "email": "r@c.co",
            "cellphone": "3001234567", "password": ""}
    service.save_remitente(form, remitente_id=2)
    assert "password" not in http.calls[-1]["json"]


def test_change_remitente_status_message(service, http):
    http.add("PATCH", "remitentes/2/despedir", {"data": {}})
    assert service.change_remitente_status(2, "despedir") == "Remitente despedido correctamente"


def test_available_remitente_actions():
    assert available_remitente_actions("active") == ["inactivar", "despedir"]
    assert available_remitente_actions("inactive") == ["activar", "despedir"]
    assert available_remitente_actions("fired") == ["activar"]


def test_count_remitentes_by_status():
    remitentes = [Remitente.from_api({"id": i, "name": "Dr. X", "email": "x@c.co", "status": status})
                  for i, status in enumerate(["active", "fired", "active"])]
    assert count_remitentes_by_status(remitentes) == {"active": 2, "inactive": 0, "fired": 1}
    assert count_remitentes_by_status([]) == {"active": 0, "inactive": 0, "fired": 0}


def test_validate_remitente_form():
    form = {"name": "Dr. Ruiz", "first_name": "Luis", "last_name": "Ruiz", "email": "r@c.co",
            "cellphone": "3001234567", "password": ""}
    assert validate_remitente_form(form, editing=False) == "La contraseña es obligatoria para nuevos remitentes"
    assert validate_remitente_form(form, editing=True) is None
    assert validate_remitente_form({**form, "email": " "}, editing=True) == "Completa todos los campos obligatorios"


def test_record_form_helpers():
    rows = [{"item_name": "Drenaje", "price": "150.000"}, {"item_name": "", "price": ""},
            {"item_name": "Faja", "price": None}]
    items = clean_item_rows(rows)
    assert items == [("Drenaje", 150000.0), ("Faja", None)]
    assert validate_record_form(datetime.date(2025, 6, 1), "Notas", items) == "Completa todos los campos del procedimiento"
    assert validate_record_form(datetime.date(2025, 6, 1), "Notas", items[:1]) is None
    assert validate_record_form(None, "Notas", items[:1]) == "Completa la fecha y al menos un item"
    assert validate_record_form(datetime.date(2025, 6, 1), "", items[:1], require_notes=False) is None


def test_procedure_payload_puts_evaluation_first():
    body = procedure_payload("2025-06-15", "Notas", [("Drenaje", 150000)], medical_evaluation_id=4)
    assert list(body) == ["medical_evaluation_id", "procedure_date", "notes", "items"]
    assert body["items"] == [{"item_name": "Drenaje", "price": 150000}]
    assert "medical_evaluation_id" not in procedure_payload("2025-06-15", "", [])


# Reports
def test_summary_cards():
    cards = summary_cards({"this_month_income": "1500000", "income_variation": 12.5, "this_month_patients": 4,
                           "total_income": 9000000})
    assert cards[0] == ("Ingresos Periodo Actual", "$ 1.500.000", "12.5% vs mes anterior")
    assert cards[1] == ("Nuevos Pacientes", "4", NO_PREVIOUS_MONTH)
    assert cards[-1] == ("Balance Total", "$ 9.000.000", None)


def test_monthly_income_frame_keeps_last_twelve_months():
    rows = [{"year": 2024 + (m - 1) // 12, "month": (m - 1) % 12 + 1, "total_income": str(m * 1000)}
            for m in range(1, 15)]
    frame = monthly_income_frame(rows)
    assert len(frame) == 12
    assert list(frame.columns) == ["Mes", "Ingresos"]
    assert frame["Mes"].iloc[0] == "Mar 2024"
    assert frame["Mes"].iloc[-1] == "Feb 2025"
    assert frame["Ingresos"].iloc[-1] == 14000


def test_income_by_procedure_frame_top_ten():
    rows = [{"item_name": f"P{i}", "total_income": i} for i in range(15)]
    frame = income_by_procedure_frame(rows)
    assert len(frame) == 10
    assert list(frame.columns) == ["Procedimiento", "Ingresos"]


def test_referrer_frame_formats_money():
    frame = referrer_frame([{"referrer_name": "", "total_patients_month": 3, "total_confirmed_month": 2,
                             "total_canceled_month": 1, "confirmed_income_month": "300000",
                             "confirmed_income_year": 1200000}])
    row = frame.iloc[0]
    assert row["Médico"] == "—"
    assert row["Ingresos (mes)"] == "$ 300.000"
    assert row["Ingresos (año)"] == "$ 1.200.000"
    assert referrer_frame(None).empty


def test_procedures_listing_newest_first(service, http):
    http.add("GET", "procedures", {"data": [
        {"id": 1, "procedure_date": "2025-05-01", "notes": "", "items": [{"item_name": "Drenaje", "price": 150000}]},
        {"id": 2, "procedure_date": "2025-06-01", "notes": "Control",
         "items": [{"item_name": "Faja", "price": 80000}, {"item_name": "Toxina", "price": "900000"}]},
    ]})
    frame = procedures_frame(service.list_procedures())
    assert frame["Procedimiento"].tolist() == ["Faja", "Toxina", "Drenaje"]
    assert frame["Precio"].tolist() == [80000, 900000, 150000]
    assert procedures_frame([]).empty
