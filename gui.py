"""
This module defines the graphical user interface (GUI) for the Coldesthetic back-office using Streamlit.

It includes functions for rendering every page of the clinic staff tool: the welcome and login
pages, the three-step patient registration wizard, the patient directory and history, the
clinical record detail, the before/after image gallery, the remitente administration and the
statistics dashboard.

Protected pages are wrapped with `show_guarded_page`, which asks the authorization gates in
`clinic.guards` what to render and performs the redirect and alert they request.
"""
# coldesthetic/gui.py

import datetime
import logging

import pandas as pd
import streamlit as st

from clinic.api import ApiError
from clinic.catalog import FAJA_ID, PIERNA_ID, PROCEDURE_GROUPS, PROCEDURES, group_count
from clinic.config import DEFAULT_AUTHENTICATED_ROUTE, LOGIN_ROUTE, ROOT_ROUTE, storage_url
from clinic.formatting import (
    digits_only,
    format_cellphone,
    format_cop,
    format_date_es,
    format_price_input,
    parse_number,
)
from clinic.guards import AuthGate, Render, RoleGate
from clinic.models import EVALUATION_CANCELED, EVALUATION_CONFIRMED
from clinic.reports import (
    evaluation_frame,
    income_by_procedure_frame,
    monthly_income_frame,
    patients_frame,
    procedures_frame,
    referrer_frame,
    summary_cards,
    weekly_income_frame,
)
from clinic.services import (
    REMITENTE_ACTIONS,
    available_remitente_actions,
    clean_item_rows,
    count_remitentes_by_status,
    procedure_payload,
    validate_record_form,
    validate_remitente_form,
)
from clinic.wizard import BIOLOGICAL_SEX_OPTIONS, LAST_STEP, MAX_AGE, MIN_AGE, STEP_TITLES, RegistrationWizard

logger = logging.getLogger(__name__)

RESTRICTED_TITLE = "Acceso Restringido"
RESTRICTED_BODY = "Solo personas autorizadas pueden acceder a esta sección del sistema."

TOAST_ICONS = {"success": "✅", "error": "❌", "warning": "⚠️", "info": "ℹ️"}

IMAGE_TYPES = ["png", "jpg", "jpeg", "webp"]

WIZARD_KEY_PREFIX = "wiz_"

# per-page toggles that must not leak into the next page
PAGE_FLAGS = ("editing_patient", "show_new_record", "editing_image_id", "editing_remitente_id")

# label, route, admin only
NAV_ITEMS = [
    ("Registrar paciente", "register-patient", False),
    ("Pacientes", "patients", False),
    ("Imágenes", "control-images", False),
    ("Estadísticas", "stats", True),
    ("Remitentes", "remitentes", True),
]


# Navigation and notifications
def navigate(route, **params):
    """Switches the current page; the gates of the previous page are discarded.

    Args:
        route (str): The route name to show on the next run.
        **params: Route parameters such as `patient_id` or `next`.
    """
    st.session_state.route = route
    st.session_state.route_params = params
    st.session_state.gates = {}
    st.session_state.pending_confirmation = None
    for flag in PAGE_FLAGS:
        st.session_state.pop(flag, None)


def route_param(name, default=None):
    return st.session_state.get("route_params", {}).get(name, default)


def notify(kind, message):
    """Queues a toast; toasts survive the rerun that usually follows a mutation."""
    st.session_state.setdefault("toasts", []).append((kind, message))


def show_toasts():
    """Displays and clears the queued toasts. Called once at the top of every run."""
    for kind, message in st.session_state.get("toasts", []):
        st.toast(message, icon=TOAST_ICONS.get(kind))
    st.session_state.toasts = []


def _request_confirmation(action_key, prompt):
    st.session_state.pending_confirmation = {"key": action_key, "prompt": prompt}


def _confirmation_box(action_key):
    """Renders the confirm prompt for a pending action.

    Args:
        action_key (str): Identifies the action the prompt belongs to.

    Returns:
        bool: True on the run where the user confirmed the action.
    """
    pending = st.session_state.get("pending_confirmation")
    if not pending or pending["key"] != action_key:
        return False
    st.warning(pending["prompt"])
    col_yes, col_no = st.columns(2)
    if col_yes.button("Sí, continuar", key=f"confirm_yes_{action_key}", type="primary", use_container_width=True):
        st.session_state.pending_confirmation = None
        return True
    if col_no.button("Cancelar", key=f"confirm_no_{action_key}", use_container_width=True):
        st.session_state.pending_confirmation = None
        st.rerun()
    return False


# Authorization
def show_restricted_screen():
    """The placeholder shown to visitors without access, while the redirect happens."""
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown(f"<h2 style='text-align: center;'>🔒 {RESTRICTED_TITLE}</h2>", unsafe_allow_html=True)
        st.markdown(f"<p style='text-align: center;'>{RESTRICTED_BODY}</p>", unsafe_allow_html=True)


def _apply_decision(decision, route):
    """Performs the effects of a gate decision and reports whether the page may render."""
    if decision.alert:
        notify("warning", decision.alert)
    if decision.render is Render.RESTRICTED:
        show_restricted_screen()
    if decision.redirect:
        params = {"next": route} if decision.redirect == ROOT_ROUTE else {}
        navigate(decision.redirect, **params)
        st.rerun()
    return decision.render is Render.CHILDREN


def show_guarded_page(session, route, render_page, allow=None):
    """Renders a page behind the authentication gate and, optionally, the role gate.

    Gates live for as long as the user stays on the page, so a redirect or an
    alert is issued at most once per visit however many reruns happen.

    Args:
        session: The `SessionStore` of this browser session.
        route (str): The route being shown.
        render_page (callable): Draws the page body.
        allow (list, optional): Roles allowed on the page; any role when None.
    """
    gates = st.session_state.setdefault("gates", {})
    auth_gate = gates.setdefault(f"auth:{route}", AuthGate())
    if not _apply_decision(auth_gate.evaluate(session), route):
        return
    if allow is not None:
        role_gate = gates.setdefault(f"role:{route}", RoleGate())
        if not _apply_decision(role_gate.evaluate(session, allow), route):
            return
    render_page()


# Public pages
def show_welcome_page(session):
    """Displays the welcome screen with the entry point to the login form."""
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown("<h1 style='text-align: center;'>Coldesthetic</h1>", unsafe_allow_html=True)
        st.markdown(
            "<p style='text-align: center;'>Gestión de pacientes, registros clínicos y procedimientos.</p>",
            unsafe_allow_html=True,
        )
        if session.user is not None:
            st.info(f"Sesión iniciada como {session.user.name}.")
            if st.button("Ir al panel", type="primary", use_container_width=True):
                navigate(DEFAULT_AUTHENTICATED_ROUTE)
                st.rerun()
        elif st.button("Iniciar sesión", type="primary", use_container_width=True):
            navigate(LOGIN_ROUTE, next=route_param("next"))
            st.rerun()


def show_login_form(session):
    """Displays the login form and handles authentication.

    On success the user goes to the page they were trying to reach (`next`),
    or to the registration wizard.

    Args:
        session: The `SessionStore` of this browser session.
    """
    if st.button("← Volver"):
        navigate(ROOT_ROUTE)
        st.rerun()
    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        st.markdown("<h2 style='text-align: center;'>Iniciar sesión</h2>", unsafe_allow_html=True)
        with st.form("login_form"):
            email = st.text_input("Correo electrónico")
            password = st.text_input("Contraseña", type="password")
            submitted = st.form_submit_button("Ingresar", use_container_width=True)

        if submitted:
            if not email or not password:
                st.error("Ingresa tu correo y contraseña.")
                return
            with st.spinner("Iniciando sesión..."):
                error = session.login(email.strip(), password)
            if error:
                st.error(error)
                return
            navigate(route_param("next") or DEFAULT_AUTHENTICATED_ROUTE)
            st.rerun()


def show_header(session, service, active_route):
    """Renders the navigation bar of the authenticated pages.

    Args:
        session: The `SessionStore` of this browser session.
        service: The `ClinicService` whose cache is dropped on logout.
        active_route (str): The route currently displayed, highlighted in the bar.
    """
    user = session.user
    if user is None:
        return
    items = [item for item in NAV_ITEMS if not item[2] or user.is_admin]
    cols = st.columns(len(items) + 1)
    for col, (label, route, _) in zip(cols, items):
        kind = "primary" if route == active_route else "secondary"
        if col.button(label, key=f"nav_{route}", type=kind, use_container_width=True):
            navigate(route)
            st.rerun()
    with cols[-1]:
        if st.button("Cerrar sesión", key="nav_logout", use_container_width=True):
            with st.spinner("Cerrando sesión..."):
                session.logout()
            service.invalidate()
            _reset_wizard()
            navigate(ROOT_ROUTE)
            st.rerun()
    st.caption(f"{user.name} · {user.role}")
    st.divider()


# Registration wizard
def _reset_wizard():
    for key in [key for key in st.session_state if str(key).startswith(WIZARD_KEY_PREFIX)]:
        del st.session_state[key]
    st.session_state.pop("wizard", None)


def _get_wizard(session):
    if "wizard" not in st.session_state:
        referrer = session.user.name if session.user and not session.user.is_admin else ""
        st.session_state.wizard = RegistrationWizard(referrer_name=referrer)
    return st.session_state.wizard


def _seed(key, value):
    """Seeds a widget key from the wizard draft when the widget is (re)mounted."""
    full_key = WIZARD_KEY_PREFIX + key
    if full_key not in st.session_state:
        st.session_state[full_key] = value
    return full_key


def _on_cellphone_change(wizard, key):
    st.session_state[key] = format_cellphone(st.session_state[key])
    wizard.cellphone = st.session_state[key]


def _on_price_change(wizard, item_name, key):
    st.session_state[key] = wizard.set_price(item_name, st.session_state[key])


def _sync_notes(wizard):
    st.session_state[WIZARD_KEY_PREFIX + "notes"] = wizard.notes


def _on_toggle_procedure(wizard, item_name):
    wizard.toggle_procedure(item_name)
    _sync_notes(wizard)


def _on_faja_change(wizard, key):
    wizard.set_faja_size(st.session_state[key])
    _sync_notes(wizard)


def _on_pierna_change(wizard, interna_key, externa_key):
    wizard.set_pierna(st.session_state[interna_key], st.session_state[externa_key])
    _sync_notes(wizard)


def _render_wizard_sidebar(wizard):
    with st.sidebar:
        st.markdown("### Registro de paciente")
        completed = wizard.steps_completed
        for step, title in enumerate(STEP_TITLES):
            mark = "✅" if completed[step] else ("▶️" if step == wizard.current_step else "⬜")
            st.button(
                f"{mark} {step + 1}. {title}",
                key=f"wizard_step_{step}",
                on_click=wizard.go_to,
                args=(step,),
                use_container_width=True,
            )


def _render_patient_step(wizard):
    col1, col2 = st.columns(2)
    with col1:
        wizard.first_name = st.text_input("Nombres", key=_seed("first_name", wizard.first_name))
        wizard.cedula = st.text_input("Cédula", key=_seed("cedula", wizard.cedula))
        cellphone_key = _seed("cellphone", wizard.cellphone)
        wizard.cellphone = st.text_input(
            "Celular",
            key=cellphone_key,
            placeholder="300 123 4567",
            on_change=_on_cellphone_change,
            args=(wizard, cellphone_key),
        )
    with col2:
        wizard.last_name = st.text_input("Apellidos", key=_seed("last_name", wizard.last_name))
        wizard.date_of_birth = st.date_input(
            "Fecha de nacimiento",
            key=_seed("date_of_birth", wizard.date_of_birth),
            min_value=datetime.date(1900, 1, 1),
            max_value=datetime.date.today(),
            format="DD/MM/YYYY",
        )
        options = [""] + list(BIOLOGICAL_SEX_OPTIONS)
        wizard.biological_sex = st.selectbox(
            "Sexo biológico",
            options,
            key=_seed("biological_sex", wizard.biological_sex),
            format_func=lambda value: value or "Seleccione una opción",
        )

    age = wizard.age
    st.text_input("Edad", value="" if age is None else f"{age} años", disabled=True)
    if wizard.age_out_of_range:
        st.warning(f"La edad debe estar entre {MIN_AGE} y {MAX_AGE} años.")
    if wizard.referrer_name:
        st.caption(f"Remitente: {wizard.referrer_name}")


def _render_clinical_step(wizard):
    col1, col2, col3 = st.columns(3)
    with col1:
        wizard.weight = st.text_input("Peso (kg)", key=_seed("weight", wizard.weight), placeholder="65")
    with col2:
        wizard.height = st.text_input("Estatura (m)", key=_seed("height", wizard.height), placeholder="1.65")
    with col3:
        st.metric("IMC", wizard.bmi if wizard.bmi is not None else "—")
    if wizard.bmi_status:
        st.caption(f"Clasificación: {wizard.bmi_status}")
    wizard.medical_background = st.text_area(
        "Antecedentes médicos",
        key=_seed("medical_background", wizard.medical_background),
        height=150,
    )


def _render_procedure_detail(wizard, procedure_id):
    """Faja and Pierna ask for their detail before their price can be typed."""
    if procedure_id == FAJA_ID:
        faja_key = _seed("faja_size", wizard.faja_size)
        st.text_input("Talla de faja", key=faja_key, on_change=_on_faja_change, args=(wizard, faja_key))
    elif procedure_id == PIERNA_ID:
        interna, externa = wizard.pierna_sides
        interna_key = _seed("pierna_interna", interna)
        externa_key = _seed("pierna_externa", externa)
        col1, col2 = st.columns(2)
        col1.checkbox("Interna", key=interna_key, on_change=_on_pierna_change,
                      args=(wizard, interna_key, externa_key))
        col2.checkbox("Externa", key=externa_key, on_change=_on_pierna_change,
                      args=(wizard, interna_key, externa_key))


def _render_procedures_step(wizard):
    selected_names = [item.item_name for item in wizard.items]
    for group_id, group_label, procedure_ids in PROCEDURE_GROUPS:
        count = group_count(procedure_ids, selected_names)
        title = f"{group_label} ({count})" if count else group_label
        with st.expander(title, expanded=bool(count)):
            for procedure_id in procedure_ids:
                label = PROCEDURES[procedure_id]
                col1, col2 = st.columns([3, 2])
                with col1:
                    st.checkbox(
                        label,
                        key=_seed(f"sel_{procedure_id}", wizard.is_selected(label)),
                        on_change=_on_toggle_procedure,
                        args=(wizard, label),
                    )
                if not wizard.is_selected(label):
                    continue
                with col1:
                    _render_procedure_detail(wizard, procedure_id)
                with col2:
                    price_key = _seed(f"price_{procedure_id}", wizard.price_of(label))
                    st.text_input(
                        "Precio",
                        key=price_key,
                        placeholder="$ 0",
                        disabled=not wizard.price_enabled(procedure_id),
                        on_change=_on_price_change,
                        args=(wizard, label, price_key),
                    )

    wizard.notes = st.text_area("Notas", key=_seed("notes", wizard.notes), height=120)

    col1, col2 = st.columns(2)
    col1.metric("Procedimientos seleccionados", wizard.selected_count)
    col2.metric("Total", f"$ {wizard.total_display}")


def show_register_patient_page(session, service):
    """Renders the three-step registration wizard.

    Args:
        session: The `SessionStore` of this browser session.
        service: The `ClinicService` used on submit.
    """
    wizard = _get_wizard(session)
    _render_wizard_sidebar(wizard)

    st.markdown(f"## {STEP_TITLES[wizard.current_step]}")
    st.progress((wizard.current_step + 1) / len(STEP_TITLES))

    if wizard.current_step == 0:
        _render_patient_step(wizard)
    elif wizard.current_step == 1:
        _render_clinical_step(wizard)
    else:
        _render_procedures_step(wizard)

    if wizard.validation_error:
        st.warning(wizard.validation_error)
    if wizard.submit_error:
        st.error(wizard.submit_error)

    st.divider()
    col1, col2 = st.columns(2)
    col1.button("Anterior", on_click=wizard.previous_step, disabled=wizard.current_step == 0,
                use_container_width=True)
    if wizard.current_step < LAST_STEP:
        col2.button("Siguiente", on_click=wizard.next_step, type="primary", use_container_width=True)
        return

    if col2.button("Guardar registro", type="primary", disabled=wizard.is_submitting, use_container_width=True):
        with st.spinner("Guardando registro..."):
            saved = wizard.submit(service)
        if saved:
            notify("success", wizard.submit_success)
            _reset_wizard()
            st.rerun()
        elif wizard.submit_error:
            notify("error", "Hubo un error al guardar el registro")
            st.rerun()


# Patients
def show_patients_page(service):
    """Lists the patients with a server-side search and a CSV export."""
    st.markdown("## Pacientes")
    search = st.text_input("Buscar", placeholder="Nombre, apellido o cédula", key="patients_search")
    try:
        with st.spinner("Cargando pacientes..."):
            patients = service.list_patients(search)
    except ApiError as exc:
        st.error(exc.message)
        return

    col1, col2 = st.columns([3, 1])
    col1.caption(f"{len(patients)} paciente(s)")
    if patients:
        col2.download_button(
            "Exportar CSV",
            data=patients_frame(patients).to_csv(index=False).encode("utf-8"),
            file_name="pacientes.csv",
            mime="text/csv",
            use_container_width=True,
        )
    else:
        st.info("No se encontraron pacientes.")
        return

    for patient in patients:
        with st.container(border=True):
            col1, col2, col3 = st.columns([3, 2, 1])
            col1.markdown(f"**{patient.full_name}**")
            col1.caption(f"C.C. {patient.cedula or '—'} · Cel. {format_cellphone(patient.cellphone) or '—'}")
            col2.caption(f"Registrado: {format_date_es(patient.created_at, 'medium')}")
            if col3.button("Ver historial", key=f"patient_{patient.id}", use_container_width=True):
                navigate("patient-history", patient_id=patient.id)
                st.rerun()

    st.divider()
    if st.toggle("Ver procedimientos registrados", key="patients_show_procedures"):
        _render_procedures_listing(service)


def _render_procedures_listing(service):
    try:
        with st.spinner("Cargando procedimientos..."):
            procedures = service.list_procedures()
    except ApiError as exc:
        st.error(exc.message)
        return
    frame = procedures_frame(procedures)
    if frame.empty:
        st.info("Aún no hay procedimientos registrados.")
        return
    st.dataframe(frame, hide_index=True, use_container_width=True)
    st.download_button(
        "Exportar procedimientos CSV",
        data=frame.to_csv(index=False).encode("utf-8"),
        file_name="procedimientos.csv",
        mime="text/csv",
    )


def _render_patient_edit_form(service, patient):
    with st.form(key=f"edit_patient_{patient.id}"):
        col1, col2 = st.columns(2)
        first_name = col1.text_input("Nombres", value=patient.first_name)
        last_name = col2.text_input("Apellidos", value=patient.last_name)
        cedula = col1.text_input("Cédula", value=patient.cedula)
        cellphone = col2.text_input("Celular", value=format_cellphone(patient.cellphone))
        dob_value = None
        if patient.date_of_birth:
            try:
                dob_value = datetime.date.fromisoformat(patient.date_of_birth[:10])
            except ValueError:
                dob_value = None
        date_of_birth = col1.date_input("Fecha de nacimiento", value=dob_value,
                                        min_value=datetime.date(1900, 1, 1), format="DD/MM/YYYY")
        sex_options = list(BIOLOGICAL_SEX_OPTIONS)
        biological_sex = col2.selectbox(
            "Sexo biológico",
            sex_options,
            index=sex_options.index(patient.biological_sex) if patient.biological_sex in sex_options else 0,
        )
        if st.form_submit_button("Guardar cambios"):
            if not first_name.strip() or not last_name.strip():
                st.error("Nombres y apellidos son obligatorios.")
                return
            data = {
                "first_name": first_name.strip(),
                "last_name": last_name.strip(),
                "cedula": cedula.strip(),
                "cellphone": digits_only(cellphone),
                "date_of_birth": date_of_birth.isoformat() if date_of_birth else None,
                "biological_sex": biological_sex,
            }
            try:
                service.update_patient(patient.id, data)
            except ApiError as exc:
                st.error(exc.message)
                return
            notify("success", "Paciente actualizado correctamente")
            st.session_state.editing_patient = False
            st.rerun()


def _price_text(price):
    # typed back through parse_amount, where "." groups thousands
    if float(price).is_integer():
        return format_price_input(str(int(price)))
    return f"{price:.2f}".replace(".", ",")


def _item_rows_editor(key, items=None):
    """A dynamic table of (item_name, price) rows backed by `st.data_editor`."""
    rows = [{"item_name": item.item_name, "price": _price_text(item.price)} for item in (items or [])]
    frame = pd.DataFrame(rows or [{"item_name": "", "price": ""}], columns=["item_name", "price"])
    edited = st.data_editor(
        frame,
        key=key,
        num_rows="dynamic",
        use_container_width=True,
        column_config={
            "item_name": st.column_config.TextColumn("Procedimiento"),
            "price": st.column_config.TextColumn("Precio"),
        },
    )
    return clean_item_rows(edited.to_dict("records"))


def _render_new_record_form(service, patient):
    """Creates a follow-up clinical record (evaluation plus procedure) for an existing patient."""
    with st.form(key=f"new_record_{patient.id}"):
        col1, col2 = st.columns(2)
        weight = col1.text_input("Peso (kg)")
        height = col2.text_input("Estatura (m)")
        medical_background = st.text_area("Antecedentes médicos")
        procedure_date = st.date_input("Fecha del procedimiento", value=datetime.date.today(), format="DD/MM/YYYY")
        notes = st.text_area("Notas del procedimiento")
        items = _item_rows_editor(f"new_record_items_{patient.id}")
        submitted = st.form_submit_button("Guardar registro")

    if not submitted:
        return
    weight_kg, height_m = parse_number(weight), parse_number(height)
    if not weight_kg or not height_m or not medical_background.strip():
        st.error("Completa todos los campos de la evaluación")
        return
    error = validate_record_form(procedure_date, notes, items)
    if error:
        st.error(error)
        return
    try:
        evaluation = service.create_evaluation(patient.id, weight_kg, height_m, medical_background)
        service.create_procedure(
            procedure_payload(procedure_date.isoformat(), notes, items, medical_evaluation_id=evaluation.id)
        )
    except ApiError as exc:
        logger.error("New record for patient %s failed: %s", patient.id, exc.message)
        st.error(exc.message)
        return
    notify("success", "Registro clínico creado correctamente")
    st.session_state.show_new_record = False
    st.rerun()


def show_patient_history_page(service):
    """Shows one patient's details and clinical records."""
    patient_id = route_param("patient_id")
    if st.button("← Volver a pacientes"):
        navigate("patients")
        st.rerun()
    if patient_id is None:
        st.info("Selecciona un paciente desde el listado.")
        return

    try:
        with st.spinner("Cargando historial..."):
            patient = service.get_patient(patient_id)
            evaluations = service.list_patient_evaluations(patient_id)
    except ApiError as exc:
        st.error(exc.message)
        return

    st.markdown(f"## {patient.full_name}")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Cédula", patient.cedula or "—")
    col2.metric("Celular", format_cellphone(patient.cellphone) or "—")
    col3.metric("Nacimiento", format_date_es(patient.date_of_birth, "medium"))
    col4.metric("Sexo", patient.biological_sex or "—")

    col1, col2 = st.columns(2)
    if col1.button("Editar paciente", use_container_width=True):
        st.session_state.editing_patient = not st.session_state.get("editing_patient", False)
    if col2.button("Nuevo registro", type="primary", use_container_width=True):
        st.session_state.show_new_record = not st.session_state.get("show_new_record", False)

    if st.session_state.get("editing_patient"):
        _render_patient_edit_form(service, patient)
    if st.session_state.get("show_new_record"):
        _render_new_record_form(service, patient)

    st.markdown("### Registros clínicos")
    if not evaluations:
        st.info("Este paciente aún no tiene registros clínicos.")
        return
    for evaluation in evaluations:
        with st.container(border=True):
            col1, col2, col3, col4 = st.columns([2, 2, 2, 1])
            col1.markdown(f"**{format_date_es(evaluation.created_at, 'medium')}**")
            col2.caption(f"Estado: {evaluation.status_label}")
            col3.caption(f"Total: {format_cop(evaluation.total)}")
            if col4.button("Ver", key=f"evaluation_{evaluation.id}", use_container_width=True):
                navigate("record-detail", evaluation_id=evaluation.id, patient_id=patient_id)
                st.rerun()


# Record detail
def _render_evaluation_edit_form(service, evaluation):
    with st.form(key=f"edit_evaluation_{evaluation.id}"):
        col1, col2 = st.columns(2)
        weight = col1.text_input("Peso (kg)", value=str(evaluation.weight))
        height = col2.text_input("Estatura (m)", value=str(evaluation.height))
        medical_background = st.text_area("Antecedentes médicos", value=evaluation.medical_background)
        if st.form_submit_button("Guardar evaluación"):
            weight_kg, height_m = parse_number(weight), parse_number(height)
            if not weight_kg or not height_m:
                st.error("Peso y estatura deben ser números válidos.")
                return
            try:
                service.update_evaluation(evaluation.id, weight_kg, height_m, medical_background)
            except ApiError as exc:
                st.error(exc.message)
                return
            notify("success", "Evaluación actualizada")
            st.rerun()


def _render_procedure_edit_form(service, procedure):
    with st.form(key=f"edit_procedure_{procedure.id}"):
        try:
            current_date = datetime.date.fromisoformat(procedure.procedure_date)
        except ValueError:
            current_date = datetime.date.today()
        procedure_date = st.date_input("Fecha", value=current_date, format="DD/MM/YYYY")
        notes = st.text_area("Notas", value=procedure.notes)
        items = _item_rows_editor(f"procedure_items_{procedure.id}", procedure.items)
        if st.form_submit_button("Guardar procedimiento"):
            error = validate_record_form(procedure_date, notes, items, require_notes=False)
            if error:
                st.error(error)
                return
            try:
                service.update_procedure(procedure.id, procedure_payload(procedure_date.isoformat(), notes, items))
            except ApiError as exc:
                st.error(exc.message)
                return
            notify("success", "Procedimiento actualizado")
            st.rerun()


def _render_status_actions(service, evaluation):
    col1, col2 = st.columns(2)
    if evaluation.status != EVALUATION_CONFIRMED and col1.button(
            "Confirmar valoración", type="primary", use_container_width=True):
        _request_confirmation(f"evaluation_confirmar_{evaluation.id}", "¿Confirmar esta valoración?")
        st.rerun()
    if evaluation.status != EVALUATION_CANCELED and col2.button("Cancelar valoración", use_container_width=True):
        _request_confirmation(f"evaluation_cancelar_{evaluation.id}", "¿Cancelar esta valoración?")
        st.rerun()
    for action in ("confirmar", "cancelar"):
        if _confirmation_box(f"evaluation_{action}_{evaluation.id}"):
            try:
                message = service.change_evaluation_status(evaluation.id, action)
            except ApiError as exc:
                notify("error", exc.message)
            else:
                notify("success", message)
            st.rerun()


def show_record_detail_page(service):
    """Shows one clinical record with its procedures, status actions and edit forms."""
    evaluation_id = route_param("evaluation_id")
    if st.button("← Volver al historial"):
        navigate("patient-history", patient_id=route_param("patient_id"))
        st.rerun()
    if evaluation_id is None:
        st.info("Selecciona un registro desde el historial del paciente.")
        return

    try:
        with st.spinner("Cargando registro..."):
            evaluation = service.get_evaluation(evaluation_id)
    except ApiError as exc:
        st.error(exc.message)
        return

    patient = evaluation.patient
    st.markdown(f"## Registro clínico · {patient.full_name if patient else ''}")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Estado", evaluation.status_label)
    col2.metric("Peso", f"{evaluation.weight} kg")
    col3.metric("Estatura", f"{evaluation.height} m")
    col4.metric("IMC", evaluation.bmi if evaluation.bmi is not None else "—")
    if evaluation.bmi_status:
        st.caption(evaluation.bmi_status)
    if evaluation.referrer_name:
        st.caption(f"Remitente: {evaluation.referrer_name}")
    st.markdown("**Antecedentes médicos**")
    st.write(evaluation.medical_background or "—")

    _render_status_actions(service, evaluation)

    with st.expander("Editar evaluación"):
        _render_evaluation_edit_form(service, evaluation)

    st.markdown("### Procedimientos")
    for procedure in evaluation.procedures:
        with st.container(border=True):
            st.markdown(f"**{format_date_es(procedure.procedure_date)}** · {format_cop(procedure.total)}")
            for item in procedure.items:
                st.write(f"- {item.item_name}: {format_cop(item.price)}")
            if procedure.notes:
                st.caption(procedure.notes)
            with st.expander("Editar procedimiento"):
                _render_procedure_edit_form(service, procedure)
    st.metric("Total del registro", format_cop(evaluation.total))

    st.download_button(
        "Exportar CSV",
        data=evaluation_frame(evaluation).to_csv(index=False).encode("utf-8"),
        file_name=f"registro_{evaluation.id}.csv",
        mime="text/csv",
    )


# Clinical images
def _uploaded(file):
    return None if file is None else (file.name, file.getvalue(), file.type)


def _render_image_form(service, image=None):
    editing = image is not None
    form_key = f"image_form_{image.id}" if editing else "image_form_new"
    with st.form(key=form_key, clear_on_submit=not editing):
        title = st.text_input("Título", value=image.title if editing else "")
        description = st.text_area("Descripción", value=image.description if editing else "")
        col1, col2 = st.columns(2)
        before = col1.file_uploader("Imagen antes", type=IMAGE_TYPES)
        after = col2.file_uploader("Imagen después", type=IMAGE_TYPES)
        submitted = st.form_submit_button("Guardar cambios" if editing else "Subir imágenes")

    if not submitted:
        return
    try:
        with st.spinner("Guardando..."):
            service.save_image(title, description, _uploaded(before), _uploaded(after),
                               image_id=image.id if editing else None)
    except ValueError as exc:
        st.error(str(exc))
        return
    except ApiError as exc:
        st.error(exc.message)
        return
    notify("success", "Imagen actualizada correctamente" if editing else "Imágenes subidas correctamente")
    st.session_state.editing_image_id = None
    st.rerun()


def show_control_images_page(service):
    """The before/after gallery with upload, edit and delete."""
    st.markdown("## Control de imágenes")
    with st.expander("Subir nuevas imágenes"):
        _render_image_form(service)

    try:
        with st.spinner("Cargando imágenes..."):
            images = service.list_images()
    except ApiError as exc:
        st.error(exc.message)
        return
    if not images:
        st.info("Aún no hay imágenes registradas.")
        return

    for image in images:
        with st.container(border=True):
            st.markdown(f"**{image.title}**")
            if image.created_at:
                st.caption(format_date_es(image.created_at, "medium"))
            if image.description:
                st.caption(image.description)
            col1, col2 = st.columns(2)
            col1.image(storage_url(image.before_image), caption="Antes", use_container_width=True)
            col2.image(storage_url(image.after_image), caption="Después", use_container_width=True)

            col1, col2 = st.columns(2)
            if col1.button("Editar", key=f"edit_image_{image.id}", use_container_width=True):
                current = st.session_state.get("editing_image_id")
                st.session_state.editing_image_id = None if current == image.id else image.id
                st.rerun()
            if col2.button("Eliminar", key=f"delete_image_{image.id}", use_container_width=True):
                _request_confirmation(f"delete_image_{image.id}", "¿Seguro que deseas eliminar esta imagen?")
                st.rerun()
            if _confirmation_box(f"delete_image_{image.id}"):
                try:
                    service.delete_image(image.id)
                except ApiError as exc:
                    notify("error", exc.message)
                else:
                    notify("success", "Imagen eliminada correctamente")
                st.rerun()
            if st.session_state.get("editing_image_id") == image.id:
                _render_image_form(service, image)


# Remitentes
def _render_remitente_form(service, remitente=None):
    editing = remitente is not None
    form_key = f"remitente_form_{remitente.id}" if editing else "remitente_form_new"
    with st.form(key=form_key, clear_on_submit=not editing):
        col1, col2 = st.columns(2)
        form = {
            "name": col1.text_input("Nombre comercial", value=remitente.name if editing else ""),
            "email": col2.text_input("Correo", value=remitente.email if editing else ""),
            "first_name": col1.text_input("Nombres", value=remitente.first_name if editing else ""),
            "last_name": col2.text_input("Apellidos", value=remitente.last_name if editing else ""),
            "cellphone": col1.text_input("Celular", value=remitente.cellphone if editing else ""),
            "password": col2.text_input(
                "Contraseña",
                type="password",
                help="Déjala vacía para conservar la actual." if editing else None,
            ),
        }
        submitted = st.form_submit_button("Guardar cambios" if editing else "Crear remitente")

    if not submitted:
        return
    error = validate_remitente_form(form, editing)
    if error:
        st.error(error)
        return
    try:
        service.save_remitente(form, remitente.id if editing else None)
    except ApiError as exc:
        st.error(exc.message)
        return
    notify("success", "Remitente actualizado correctamente" if editing else "Remitente creado correctamente")
    st.session_state.editing_remitente_id = None
    st.rerun()


def _render_remitente_entry(service, remitente):
    with st.container(border=True):
        col1, col2 = st.columns([3, 2])
        col1.markdown(f"**{remitente.name}** · {remitente.status_label}")
        col1.caption(f"{remitente.first_name} {remitente.last_name} · {remitente.email} · "
                     f"{format_cellphone(remitente.cellphone) or '—'}")

        actions = available_remitente_actions(remitente.status)
        cols = col2.columns(len(actions) + 1)
        if cols[0].button("Editar", key=f"edit_remitente_{remitente.id}", use_container_width=True):
            current = st.session_state.get("editing_remitente_id")
            st.session_state.editing_remitente_id = None if current == remitente.id else remitente.id
            st.rerun()
        for col, action in zip(cols[1:], actions):
            label = REMITENTE_ACTIONS[action][0]
            if col.button(label, key=f"remitente_{action}_{remitente.id}", use_container_width=True):
                _request_confirmation(
                    f"remitente_{action}_{remitente.id}",
                    f"¿Seguro que deseas {label.lower()} a {remitente.name}?",
                )
                st.rerun()

        for action in actions:
            if _confirmation_box(f"remitente_{action}_{remitente.id}"):
                try:
                    message = service.change_remitente_status(remitente.id, action)
                except ApiError as exc:
                    notify("error", exc.message)
                else:
                    notify("success", message)
                st.rerun()

        if st.session_state.get("editing_remitente_id") == remitente.id:
            _render_remitente_form(service, remitente)


def show_remitentes_page(service):
    """Administration of the referring doctors' accounts (admins only)."""
    st.markdown("## Remitentes")
    try:
        with st.spinner("Cargando remitentes..."):
            remitentes = service.list_remitentes()
    except ApiError as exc:
        st.error(exc.message)
        return

    counts = count_remitentes_by_status(remitentes)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total", len(remitentes))
    col2.metric("Activos", counts["active"])
    col3.metric("Inactivos", counts["inactive"])
    col4.metric("Despedidos", counts["fired"])

    with st.expander("Nuevo remitente"):
        _render_remitente_form(service)

    if not remitentes:
        st.info("No hay remitentes registrados.")
        return
    for remitente in remitentes:
        _render_remitente_entry(service, remitente)


# Statistics
def show_stats_page(service):
    """Income and activity dashboard (admins only)."""
    st.markdown("## Estadísticas")
    try:
        with st.spinner("Cargando estadísticas..."):
            summary = service.stats("summary")
            monthly = service.stats("monthly_income")
            weekly = service.stats("weekly_income")
            by_procedure = service.stats("income_by_procedure")
            referrers = service.stats("referrers")
    except ApiError as exc:
        st.error(exc.message)
        return

    cards = summary_cards(summary)
    for col, (label, value, variation) in zip(st.columns(len(cards)), cards):
        col.metric(label, value)
        if variation:
            col.caption(variation)

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("#### Ingresos mensuales")
        st.bar_chart(monthly_income_frame(monthly), x="Mes", y="Ingresos")
    with col2:
        st.markdown("#### Ingresos de la semana")
        st.bar_chart(weekly_income_frame(weekly), x="Día", y="Ingresos")

    st.markdown("#### Ingresos por procedimiento")
    st.bar_chart(income_by_procedure_frame(by_procedure), x="Procedimiento", y="Ingresos", horizontal=True)

    st.markdown("#### Remitentes")
    frame = referrer_frame(referrers)
    if frame.empty:
        st.info("Sin datos de remitentes.")
    else:
        st.dataframe(frame, hide_index=True, use_container_width=True)
