"""Tests for claim batch listing."""

from datetime import datetime

import pytest

from conftest import ADMIN, ANALYST, IPS_USER, OTHER_IPS_USER, make_lote
from furips.core.exceptions import ValidationError
from furips.services.lotes import LoteFilters, list_ips_names, list_lotes


@pytest.fixture
def lotes(db_session):
    return [
        make_lote(db_session, numero_lote=1, fecha_creacion=datetime(2024, 5, 1)),
        make_lote(
            db_session,
            numero_lote=2,
            fecha_creacion=datetime(2024, 5, 3),
            codigo_habilitacion="7600100001-02",
        ),
        make_lote(
            db_session,
            numero_lote=3,
            fecha_creacion=datetime(2024, 5, 5),
            nombre_ips="Hospital Sur",
            codigo_habilitacion=OTHER_IPS_USER.codigo_habilitacion,
        ),
        make_lote(
            db_session,
            numero_lote=4,
            fecha_creacion=datetime(2024, 5, 7),
            nombre_envio="ENVIO-RG-2024",
        ),
    ]


def test_admin_sees_all_but_excluded(db_session, lotes):
    page = list_lotes(db_session, ADMIN, LoteFilters())

    assert [lote.numero_lote for lote in page.items] == [3, 2, 1]
    assert page.total == 3


def test_user_sees_institution_prefix(db_session, lotes):
    page = list_lotes(db_session, IPS_USER, LoteFilters())

    # Both sedes of the same institution share the first ten characters
    assert sorted(lote.numero_lote for lote in page.items) == [1, 2]


def test_analyst_without_code_sees_all(db_session, lotes):
    page = list_lotes(db_session, ANALYST, LoteFilters())

    assert page.total == 3


def test_filters(db_session, lotes):
    page = list_lotes(db_session, ADMIN, LoteFilters(nombre_ips="Hospital"))
    assert [lote.numero_lote for lote in page.items] == [3]

    page = list_lotes(db_session, ADMIN, LoteFilters(numero_lote=2))
    assert [lote.numero_lote for lote in page.items] == [2]

    page = list_lotes(
        db_session,
        ADMIN,
        LoteFilters(fecha_inicio=datetime(2024, 5, 2), fecha_fin=datetime(2024, 5, 6)),
    )
    assert [lote.numero_lote for lote in page.items] == [3, 2]


def test_pagination(db_session, lotes):
    page = list_lotes(db_session, ADMIN, LoteFilters(), page=2, limit=2)

    assert [lote.numero_lote for lote in page.items] == [1]
    assert page.total == 3
    assert page.total_pages == 2


def test_date_range_limit_for_non_admins(db_session, lotes):
    filters = LoteFilters(fecha_inicio=datetime(2024, 1, 1), fecha_fin=datetime(2024, 3, 1))

    with pytest.raises(ValidationError):
        list_lotes(db_session, IPS_USER, filters)

    assert list_lotes(db_session, ADMIN, filters).total == 0


def test_inverted_date_range(db_session, lotes):
    filters = LoteFilters(fecha_inicio=datetime(2024, 5, 10), fecha_fin=datetime(2024, 5, 1))

    with pytest.raises(ValidationError):
        list_lotes(db_session, ADMIN, filters)


def test_invalid_page(db_session):
    with pytest.raises(ValidationError):
        list_lotes(db_session, ADMIN, LoteFilters(), page=0)


def test_list_ips_names(db_session, lotes):
    make_lote(db_session, numero_lote=9, nombre_ips="")

    assert list_ips_names(db_session) == ["Clinica Norte", "Hospital Sur"]
    assert list_ips_names(db_session, search="hosp") == ["Hospital Sur"]
