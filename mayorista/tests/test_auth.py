import pytest

from mayorista.errors import ProtectedRoleError, ReferenceViolation, SchemaViolation


def test_resolve_client_and_tier(container, datos):
    auth = container.auth_service
    assert auth.resolve_client_id('u-acme') == datos['acme']['id']
    assert auth.resolve_client_tier('u-acme') == '1'
    assert auth.resolve_client_tier('u-sur') == '3'

    # Admin y vendedor no están ligados a un cliente
    assert auth.resolve_client_id('u-admin') is None
    assert auth.resolve_client_tier('u-ana') is None
    assert auth.resolve_client_tier('desconocido') is None
    assert auth.resolve_client_tier(None) is None


def test_is_admin(container, datos):
    auth = container.auth_service
    assert auth.is_admin('u-admin')
    assert not auth.is_admin('u-acme')
    assert not auth.is_admin('u-ana')
    assert not auth.is_admin(None)


def test_assign_role_creates_and_replaces(container, datos):
    auth = container.auth_service
    result = auth.assign_role('u-nuevo', 'vendedor', vendedor_id=datos['ana']['id'])
    assert result['ok']
    assert auth.get_role_name('u-nuevo') == 'vendedor'

    result = auth.assign_role('u-nuevo', 'cliente', cliente_id=datos['sur']['id'])
    assert result['ok']
    assert auth.resolve_client_tier('u-nuevo') == '3'
    assert len([r for r in container.role_repo.get_all() if r['user_id'] == 'u-nuevo']) == 1

    assert auth.assign_role('', 'admin') == {'ok': False, 'error': 'user_id requerido'}


def test_assign_role_validates_contract(container, datos):
    auth = container.auth_service
    with pytest.raises(SchemaViolation):
        auth.assign_role('u-x', 'cliente')
    with pytest.raises(ReferenceViolation):
        auth.assign_role('u-x', 'cliente', cliente_id='no-existe')


def test_superadmin_is_protected(container, datos):
    auth = container.auth_service
    assert auth.bootstrap_superadmin('u-root', 'Root')['ok']
    assert auth.is_admin('u-root')
    assert auth.is_superadmin('u-root')

    # Solo puede existir el creado en la inicialización
    assert not auth.bootstrap_superadmin('u-otro')['ok']
    assert not auth.assign_role('u-otro', 'superadmin')['ok']
    assert 'superadmin' in auth.assign_role('u-root', 'admin')['error']
    assert not auth.remove_role('u-root')['ok']
    assert auth.is_superadmin('u-root')

    with pytest.raises(ProtectedRoleError):
        auth.verificar_no_protegido(container.role_repo.get_by_user('u-root'))


def test_bootstrap_refuses_user_with_role(container, datos):
    result = container.auth_service.bootstrap_superadmin('u-admin')
    assert result == {'ok': False, 'error': 'El usuario ya tiene un rol asignado'}


def test_remove_role(container, datos):
    auth = container.auth_service
    assert auth.remove_role('u-ana') == {'ok': True}
    assert auth.get_role('u-ana') is None
    assert not auth.remove_role('u-ana')['ok']


def test_get_users_with_roles(container, datos):
    container.auth_service.bootstrap_superadmin('u-root')
    usuarios = container.auth_service.get_users_with_roles()

    assert [u['user_id'] for u in usuarios][0] == 'u-root'
    assert usuarios[0]['es_protegido']
    acme = next(u for u in usuarios if u['user_id'] == 'u-acme')
    assert acme['cliente_nombre'] == 'Acme'
    assert not acme['es_protegido']


def test_superadmin_bootstrapped_from_config(tmp_path):
    from mayorista import create_app

    app = create_app(str(tmp_path), config={
        'TESTING': True,
        'ENABLE_PROFILING': False,
        'SEED_CURVAS': False,
        'SUPERADMIN_USER_ID': 'u-root',
    })
    assert app.extensions['mayorista'].auth_service.is_superadmin('u-root')
