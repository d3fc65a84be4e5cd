"""
The procedure catalog offered in the registration wizard.

Labels are what the backend stores as `item_name`, so they must stay stable.
"""
# coldesthetic/clinic/catalog.py

FAJA_ID = "faja_postoperatoria"
PIERNA_ID = "pierna"

PROCEDURES = {
    "lipo_abdomen": "Lipólisis láser abdomen",
    "lipo_flancos": "Lipólisis láser flancos",
    "lipo_espalda": "Lipólisis láser espalda",
    "lipo_brazos": "Lipólisis láser brazos",
    "lipo_papada": "Lipólisis láser papada",
    PIERNA_ID: "Pierna",
    "gluteo": "Transferencia grasa a glúteos",
    "drenaje": "Drenaje linfático",
    "masaje_post": "Masajes postoperatorios",
    FAJA_ID: "Faja postoperatoria",
    "toxina": "Toxina botulínica",
    "acido_hialuronico": "Ácido hialurónico",
    "valoracion": "Valoración médica",
}

PROCEDURE_GROUPS = [
    ("lipolisis", "Lipólisis láser", ["lipo_abdomen", "lipo_flancos", "lipo_espalda", "lipo_brazos", "lipo_papada", PIERNA_ID]),
    ("corporal", "Remodelación corporal", ["gluteo"]),
    ("postoperatorio", "Postoperatorio", ["drenaje", "masaje_post", FAJA_ID]),
    ("facial", "Estética facial", ["toxina", "acido_hialuronico"]),
    ("consulta", "Consulta", ["valoracion"]),
]


def group_count(procedure_ids, selected_names):
    """Counts how many procedures of a group are currently selected."""
    selected = set(selected_names)
    return sum(1 for procedure_id in procedure_ids if PROCEDURES.get(procedure_id) in selected)
