import enum


class LocationType(str, enum.Enum):
    physical = "physical"
    mobile = "mobile"


class ItemUnit(str, enum.Enum):
    ud = "ud"
    ml = "ml"


class ItemType(str, enum.Enum):
    simple = "simple"
    composite = "composite"
    service = "service"


class LineType(str, enum.Enum):
    material = "Material"
    service = "Servicio"


class POStatus(str, enum.Enum):
    pending_approval = "Pendiente de Aprobación"
    approved = "Aprobada"
    sent = "Enviada al Proveedor"
    received = "Recibida"
    partially_received = "Recibida Parcialmente"
    rejected = "Rechazado"


class MovementType(str, enum.Enum):
    reception = "RECEPTION"
    transfer = "TRANSFER"
    adjustment = "ADJUSTMENT"


# Statuts possibles à la création d'une commande
INITIAL_PO_STATUSES = {
    POStatus.pending_approval,
    POStatus.approved,
    POStatus.sent,
}

# Seules ces commandes peuvent être réceptionnées
RECEIVABLE_PO_STATUSES = {POStatus.sent}
