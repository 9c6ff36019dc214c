from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from dashboard.schemas.listing import SortState
from dashboard.services.comparator import DEFAULT_TIE_BREAKERS, FieldSpec

ListMode = Literal["local", "hybrid"]
ColumnKind = Literal["text", "number", "money", "date", "bool", "count"]

ACTIVE_LABELS = ("Activo", "Inactivo")
ENABLED_LABELS = ("Habilitado", "Deshabilitado")


class UnknownList(LookupError):
    def __init__(self, name: str):
        super().__init__(f'Listado no encontrado: "{name}"')
        self.name = name


@dataclass(frozen=True)
class ExportColumn:
    header: str
    path: str
    kind: ColumnKind = "text"
    labels: tuple[str, str] = ACTIVE_LABELS
    empty: str = ""


@dataclass(frozen=True)
class ListConfig:
    name: str
    title: str
    section: str
    endpoint: str
    mode: ListMode
    sortable: dict[str, FieldSpec]
    default_sort: SortState
    searchable_fields: tuple[str, ...] = ()
    date_field: str | None = None
    # public filter name -> record path; in hybrid mode the name doubles as remote query parameter
    equality_fields: dict[str, str] = field(default_factory=dict)
    tie_breakers: tuple[FieldSpec, ...] = DEFAULT_TIE_BREAKERS
    export_columns: tuple[ExportColumn, ...] = ()
    sheet_name: str = ""
    file_stem: str = ""
    header_endpoint: str | None = None
    requires_scope: bool = False
    default_filters: dict[str, object] = field(default_factory=dict)

    def resolve_endpoint(self, scope: str | None = None) -> str:
        return self.endpoint.format(scope=scope or "")

    def resolve_header_endpoint(self, scope: str | None = None) -> str | None:
        if not self.header_endpoint:
            return None
        return self.header_endpoint.format(scope=scope or "")


_ACTIVO_SORT = FieldSpec("activo", "bool")
_CREATED_SORT = FieldSpec("createdAt", "date")


CAJAS = ListConfig(
    name="cajas",
    title="Cajas",
    section="cajas",
    endpoint="/cajas",
    mode="local",
    searchable_fields=("descripcion",),
    equality_fields={"activo": "activo", "assignedUserId": "assignedUser.id"},
    sortable={
        "descripcion": FieldSpec("descripcion"),
        "saldo": FieldSpec("saldo", "number"),
        "activo": _ACTIVO_SORT,
        "createdAt": _CREATED_SORT,
    },
    default_sort=SortState(key="descripcion", direction="asc"),
    export_columns=(
        ExportColumn("Descripción", "descripcion"),
        ExportColumn("Saldo", "saldo", "money"),
        ExportColumn("Fecha Creación", "createdAt", "date"),
        ExportColumn("Estado", "activo", "bool"),
    ),
    sheet_name="Cajas",
    file_stem="cajas",
)

MOVIMIENTOS_CAJA = ListConfig(
    name="movimientos-caja",
    title="Movimientos de Caja",
    section="cajas",
    endpoint="/cajas/{scope}/movimientos",
    header_endpoint="/cajas/{scope}",
    requires_scope=True,
    mode="hybrid",
    searchable_fields=("detalle", "observaciones"),
    date_field="fecha",
    sortable={
        "fecha": FieldSpec("fecha", "date"),
        "tipo": FieldSpec("tipo"),
        "detalle": FieldSpec("detalle"),
        "debe": FieldSpec("debe", "number"),
        "haber": FieldSpec("haber", "number"),
        "saldo": FieldSpec("saldo", "number"),
    },
    default_sort=SortState(key="fecha", direction="desc"),
    export_columns=(
        ExportColumn("Fecha", "fecha", "date"),
        ExportColumn("Tipo", "tipo"),
        ExportColumn("Detalle", "detalle"),
        ExportColumn("Observación", "observaciones", empty="-"),
        ExportColumn("Debe", "debe", "money"),
        ExportColumn("Haber", "haber", "money"),
        ExportColumn("Saldo", "saldo", "money"),
    ),
    sheet_name="Movimientos {header}",
    file_stem="movimientos_{header}",
)

GASTOS = ListConfig(
    name="gastos",
    title="Gastos",
    section="gastos",
    endpoint="/gastos",
    mode="hybrid",
    searchable_fields=("observaciones",),
    date_field="fecha",
    equality_fields={"activo": "activo", "cajaId": "caja.id", "tipoGastoId": "tipoGasto.id"},
    sortable={
        "id": FieldSpec("id", "number"),
        "fecha": FieldSpec("fecha", "date"),
        "monto": FieldSpec("monto", "number"),
        "caja": FieldSpec("caja.descripcion"),
        "tipoGasto": FieldSpec("tipoGasto.descripcion"),
        "factura": FieldSpec("factura"),
    },
    default_sort=SortState(key="fecha", direction="desc"),
    export_columns=(
        ExportColumn("ID", "id", "number"),
        ExportColumn("Fecha", "fecha", "date"),
        ExportColumn("Factura", "factura"),
        ExportColumn("Tipo de Gasto", "tipoGasto.descripcion"),
        ExportColumn("Caja", "caja.descripcion"),
        ExportColumn("Monto", "monto", "money"),
        ExportColumn("Estado", "activo", "bool", labels=ENABLED_LABELS),
        ExportColumn("Observaciones", "observaciones"),
    ),
    sheet_name="Gastos",
    file_stem="gastos",
)

VENTAS = ListConfig(
    name="ventas",
    title="Ventas",
    section="ventas",
    endpoint="/ventas",
    mode="hybrid",
    searchable_fields=("observaciones", "cliente.descripcion"),
    date_field="fecha",
    equality_fields={"activo": "activo", "cajaId": "caja.id", "clienteId": "cliente.id"},
    default_filters={"activo": True},
    sortable={
        "id": FieldSpec("id", "number"),
        "fecha": FieldSpec("fecha", "date"),
        "monto": FieldSpec("monto", "number"),
        "cliente": FieldSpec("cliente.descripcion"),
        "caja": FieldSpec("caja.descripcion"),
    },
    default_sort=SortState(key="id", direction="desc"),
    export_columns=(
        ExportColumn("N° Venta", "id", "number"),
        ExportColumn("Fecha", "fecha", "date"),
        ExportColumn("Cliente", "cliente.descripcion"),
        ExportColumn("Caja", "caja.descripcion"),
        ExportColumn("Observaciones", "observaciones"),
        ExportColumn("Productos", "productos", "count"),
        ExportColumn("Monto", "monto", "money"),
        ExportColumn("Estado", "activo", "bool"),
    ),
    sheet_name="Ventas",
    file_stem="ventas",
)

MOVIMIENTOS_INTERNOS = ListConfig(
    name="movimientos-internos",
    title="Movimientos Internos",
    section="movimientos-internos",
    endpoint="/movimientos-internos",
    mode="hybrid",
    searchable_fields=("observaciones",),
    date_field="fecha",
    equality_fields={
        "activo": "activo",
        "cajaOrigenId": "cajaOrigen.id",
        "cajaDestinoId": "cajaDestino.id",
    },
    sortable={
        "id": FieldSpec("id", "number"),
        "fecha": FieldSpec("fecha", "date"),
        "monto": FieldSpec("monto", "number"),
        "cajaOrigen": FieldSpec("cajaOrigen.descripcion"),
        "cajaDestino": FieldSpec("cajaDestino.descripcion"),
    },
    default_sort=SortState(key="id", direction="desc"),
    export_columns=(
        ExportColumn("ID", "id", "number"),
        ExportColumn("Fecha", "fecha", "date"),
        ExportColumn("Caja Origen", "cajaOrigen.descripcion"),
        ExportColumn("Caja Destino", "cajaDestino.descripcion"),
        ExportColumn("Monto", "monto", "money"),
        ExportColumn("Estado", "activo", "bool", labels=ENABLED_LABELS),
        ExportColumn("Observaciones", "observaciones"),
    ),
    sheet_name="Movimientos",
    file_stem="movimientos_internos",
)

CLIENTES = ListConfig(
    name="clientes",
    title="Clientes",
    section="clientes",
    endpoint="/clientes",
    mode="local",
    searchable_fields=("descripcion", "identificacion"),
    equality_fields={"activo": "activo", "tipoIdentificacion": "tipoIdentificacion"},
    sortable={
        "descripcion": FieldSpec("descripcion"),
        "identificacion": FieldSpec("identificacion"),
        "tipoIdentificacion": FieldSpec("tipoIdentificacion"),
        "activo": _ACTIVO_SORT,
        "createdAt": _CREATED_SORT,
    },
    default_sort=SortState(key="descripcion", direction="asc"),
    export_columns=(
        ExportColumn("ID", "id", "number"),
        ExportColumn("Descripción", "descripcion"),
        ExportColumn("Tipo Ident.", "tipoIdentificacion"),
        ExportColumn("Identificación", "identificacion"),
        ExportColumn("Teléfono", "telefono", empty="-"),
        ExportColumn("Email", "email", empty="-"),
        ExportColumn("Domicilio", "domicilio", empty="-"),
        ExportColumn("Estado", "activo", "bool"),
        ExportColumn("Fecha Creación", "createdAt", "date"),
    ),
    sheet_name="Clientes",
    file_stem="clientes",
)

PRODUCTOS = ListConfig(
    name="productos",
    title="Productos",
    section="productos",
    endpoint="/productos",
    mode="local",
    searchable_fields=("descripcion", "codigo"),
    equality_fields={"activo": "activo", "familiaId": "familiaId"},
    sortable={
        "codigo": FieldSpec("codigo"),
        "descripcion": FieldSpec("descripcion"),
        "familia": FieldSpec("familia.descripcion"),
        "unidadMedida": FieldSpec("unidadMedida.descripcion"),
        "activo": _ACTIVO_SORT,
    },
    default_sort=SortState(key="descripcion", direction="asc"),
    export_columns=(
        ExportColumn("Código", "codigo"),
        ExportColumn("Descripción", "descripcion"),
        ExportColumn("Familia", "familia.descripcion"),
        ExportColumn("Unidad", "unidadMedida.descripcion"),
        ExportColumn("Estado", "activo", "bool"),
    ),
    sheet_name="Productos",
    file_stem="productos",
)

FAMILIAS_PRODUCTOS = ListConfig(
    name="familias-productos",
    title="Familias de Productos",
    section="familias-productos",
    endpoint="/familias-productos",
    mode="local",
    searchable_fields=("descripcion",),
    equality_fields={"activo": "activo"},
    sortable={
        "descripcion": FieldSpec("descripcion"),
        "activo": _ACTIVO_SORT,
        "createdAt": _CREATED_SORT,
        "updatedAt": FieldSpec("updatedAt", "date"),
    },
    default_sort=SortState(key="descripcion", direction="asc"),
    export_columns=(
        ExportColumn("ID", "id", "number"),
        ExportColumn("Descripción", "descripcion"),
        ExportColumn("Estado", "activo", "bool"),
        ExportColumn("Fecha Creación", "createdAt", "date"),
    ),
    sheet_name="Familias de Productos",
    file_stem="familias_de_productos",
)

USUARIOS = ListConfig(
    name="usuarios",
    title="Usuarios",
    section="usuarios",
    endpoint="/users",
    mode="local",
    searchable_fields=("nombre", "apellido", "email", "username"),
    equality_fields={"rol": "rol", "activo": "activo"},
    sortable={
        "apellido": FieldSpec("apellido"),
        "email": FieldSpec("email"),
        "dni": FieldSpec("dni"),
        "rol": FieldSpec("rol"),
        "activo": _ACTIVO_SORT,
    },
    default_sort=SortState(key="apellido", direction="asc"),
    export_columns=(
        ExportColumn("Usuario", "username"),
        ExportColumn("Contacto", "email"),
        ExportColumn("DNI", "dni"),
        ExportColumn("Rol", "rol"),
        ExportColumn("Estado", "activo", "bool"),
    ),
    sheet_name="Usuarios",
    file_stem="usuarios",
)


LISTS: dict[str, ListConfig] = {
    config.name: config
    for config in (
        CAJAS,
        MOVIMIENTOS_CAJA,
        GASTOS,
        VENTAS,
        MOVIMIENTOS_INTERNOS,
        CLIENTES,
        PRODUCTOS,
        FAMILIAS_PRODUCTOS,
        USUARIOS,
    )
}


def get_list_config(name: str) -> ListConfig:
    config = LISTS.get(str(name or "").strip())
    if config is None:
        raise UnknownList(name)
    return config
