import pytest
from checkout.api import register_checkout_error_handlers, router
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def app():
    app = FastAPI()
    app.include_router(router)
    register_exception_handlers(app)
    register_checkout_error_handlers(app)
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)
