import time

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from vax_credentials.token_client import TokenExchanger

TOKEN_ENDPOINT = "https://auth.example/token"
BEARER_SECRET = "bearer-signing-secret-for-tests-only"


def make_bearer(claims: dict) -> str:
    return jwt.encode(claims, BEARER_SECRET, algorithm="HS256")


def to_pem(private_key) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


class FakeClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TokenEndpoint:
    """In-process stand-in for the token exchange service."""

    def __init__(self, public_key, clock: FakeClock, lifetime: int = 3600):
        self.public_key = public_key
        self.clock = clock
        self.lifetime = lifetime
        self.calls: list[dict] = []
        self.issued: list[str] = []
        self.fail_status: int | None = None
        self.omit_token = False

        router = APIRouter()

        @router.post("/token")
        async def token(request: Request):
            body = await request.json()
            self.calls.append({"body": body, "content_type": request.headers.get("content-type", "")})

            if self.fail_status is not None:
                return JSONResponse(status_code=self.fail_status, content={"error": "unavailable"})

            try:
                claims = jwt.decode(
                    body["token"],
                    self.public_key,
                    algorithms=["ES256"],
                    audience="vendasta.com",
                )
            except Exception:
                return JSONResponse(status_code=401, content={"error": "invalid_assertion"})

            if self.omit_token:
                return JSONResponse(status_code=200, content={"status": "ok"})

            bearer = make_bearer({
                "sub": claims["sub"],
                "seq": len(self.calls),
                "exp": int(self.clock()) + self.lifetime,
            })
            self.issued.append(bearer)
            return {"token": bearer}

        self.app = FastAPI()
        self.app.include_router(router)


@pytest.fixture
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def service_account_info(ec_key):
    return {
        "private_key_id": "key-123",
        "private_key": to_pem(ec_key),
        "client_email": "svc@project.vendasta.com",
        "token_uri": TOKEN_ENDPOINT,
    }


@pytest.fixture
def clock():
    return FakeClock(float(int(time.time())))


@pytest.fixture
def token_endpoint(ec_key, clock):
    return TokenEndpoint(ec_key.public_key(), clock)


@pytest.fixture
def exchanger(token_endpoint):
    with TestClient(token_endpoint.app) as client:
        yield TokenExchanger(client=client)


class StubExchanger:
    """Counts exchanges and issues ``bearer-<n>`` tokens living ``lifetime`` seconds."""

    def __init__(self, clock, lifetime: float = 3600):
        self.clock = clock
        self.lifetime = lifetime
        self.calls = 0
        self.endpoints = []
        self.fail: Exception | None = None
        self.closed = False

    def exchange(self, endpoint, assertion):
        self.calls += 1
        self.endpoints.append(endpoint)
        if self.fail is not None:
            raise self.fail
        return f"bearer-{self.calls}", self.clock() + self.lifetime

    def close(self):
        self.closed = True


@pytest.fixture
def stub(clock):
    return StubExchanger(clock)
