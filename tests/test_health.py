from fastapi.testclient import TestClient
from apps.gateway.main import app
from canvaslib.di import container

def test_health():
    c = TestClient(app)
    r = c.get('/healthz')
    assert r.status_code == 200
    assert r.json()['status'] == 'ok'

def test_builder_providers_registered():
    assert 'builder.sessions' in container.registered()
    assert 'builder.engine' in container.registered()

def test_builder_service_app():
    from apps.builder.main import app as builder_app
    r = TestClient(builder_app).get('/builder/node-types')
    assert r.status_code == 200
