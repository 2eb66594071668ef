"""Pytest configuration and shared fixtures."""

import asyncio
import os
from datetime import date
from typing import Any, Dict

# Settings and the module-level engine are built at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import fakeredis
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.database.models import DocumentRecord
from app.repositories.base_repository import DocumentRepository
from app.repositories.agent_repository import AgentRepository
from app.repositories.claim_repository import ClaimRepository
from app.repositories.client_repository import ClientRepository
from app.repositories.policy_repository import PolicyRepository
from app.repositories.vehicle_repository import VehicleRepository
from app.services.claim_service import ClaimService
from app.services.client_service import ClientService
from app.services.policy_service import PolicyService
from app.services.ranking_cache import RankingCache
from app.services.reporting_service import ReportingService
from app.services.sequence_service import SequenceAllocator
from app.services.validators import ClaimValidator, ClientValidator, PolicyValidator

TODAY = date(2025, 6, 1)


# --------------------------------------------------------------------------- #
# Seed data: mixed representations as they arrive from CSV seeding
# --------------------------------------------------------------------------- #

AGENTS = [
    {"id_agente": 1, "nombre": "Ana", "apellido": "Pérez", "matricula": "MAT-001", "activo": True},
    {"id_agente": "2", "nombre": "Bruno", "apellido": "Sosa", "matricula": "MAT-002", "activo": "True"},
    {"id_agente": 3, "nombre": "Carla", "apellido": "Ruiz", "matricula": "MAT-003", "activo": "False"},
]

CLIENTS = [
    {"id_cliente": 1, "nombre": "Laura", "apellido": "Gomez", "dni": 30111222,
     "email": "laura@example.com", "activo": True},
    {"id_cliente": "2", "nombre": "Martin", "apellido": "Diaz", "dni": "30222333",
     "email": "martin@example.com", "activo": "True"},
    {"id_cliente": 3, "nombre": "Sofia", "apellido": "Lopez", "dni": "30333444",
     "email": "sofia@example.com", "activo": False},
    {"id_cliente": 4.0, "nombre": "Diego", "apellido": "Fernandez", "dni": "30444555",
     "email": "diego@example.com", "activo": "true"},
]

POLICIES = [
    {"nro_poliza": "POL-001001", "id_cliente": "1", "id_agente": 1, "tipo": "Auto",
     "fecha_inicio": "2024-01-10", "fecha_fin": "2025-01-10",
     "prima_mensual": "120.50", "cobertura_total": "150000", "estado": "Activa"},
    {"nro_poliza": "POL-001002", "id_cliente": 2, "id_agente": "1", "tipo": "Hogar",
     "fecha_inicio": "2023-03-01", "fecha_fin": "2024-03-01",
     "prima_mensual": 80, "cobertura_total": 90000, "estado": "Vencida"},
    {"nro_poliza": "POL-001003", "id_cliente": 2, "id_agente": 2, "tipo": "Vida",
     "fecha_inicio": "15/05/2024", "fecha_fin": "15/05/2025",
     "prima_mensual": "60", "cobertura_total": "200000", "estado": "Vigente"},
    {"nro_poliza": "POL-001004", "id_cliente": 3, "id_agente": 2, "tipo": "Auto",
     "fecha_inicio": "2023-11-20", "fecha_fin": "2024-11-20",
     "prima_mensual": "95", "cobertura_total": "50000", "estado": "Suspendida"},
    {"nro_poliza": "POL-001005", "id_cliente": "4", "id_agente": 3, "tipo": "Auto",
     "fecha_inicio": "2022-07-01T00:00:00Z", "fecha_fin": "2026-07-01",
     "prima_mensual": "70", "cobertura_total": "75000", "estado": "Activa"},
]

VEHICLES = [
    {"id_vehiculo": 1, "id_cliente": 1, "marca": "Toyota", "modelo": "Corolla",
     "anio": "2019", "patente": "AB123CD", "asegurado": True},
    {"id_vehiculo": 2, "id_cliente": "1", "marca": "Ford", "modelo": "Ka",
     "anio": 2015, "patente": "AC456EF", "asegurado": "True"},
    {"id_vehiculo": 3, "id_cliente": 2, "marca": "Fiat", "modelo": "Uno",
     "anio": 2010, "patente": "AA111BB", "asegurado": "False"},
    {"id_vehiculo": 4, "id_cliente": "4", "marca": "Volkswagen", "modelo": "Gol",
     "anio": 2018, "patente": "AD789GH", "asegurado": "true"},
]

CLAIMS = [
    {"id_siniestro": 1, "nro_poliza": "POL-001001", "fecha": "2025-02-10", "tipo": "Choque",
     "monto_estimado": "35000", "descripcion": "Colisión trasera", "estado": "Abierto"},
    {"id_siniestro": 2, "nro_poliza": "POL-001001", "fecha": "2023-01-05", "tipo": "Choque",
     "monto_estimado": 12000, "descripcion": "Raspón", "estado": "Cerrado"},
    {"id_siniestro": 3, "nro_poliza": "POL-001003", "fecha": "2024-09-01", "tipo": "Robo",
     "monto_estimado": "80000", "descripcion": "Robo de equipaje", "estado": "abierto"},
    {"id_siniestro": 4, "nro_poliza": "POL-999999", "fecha": "2025-01-01", "tipo": "Choque",
     "monto_estimado": "1000", "descripcion": "Póliza inexistente", "estado": "Abierto"},
    {"id_siniestro": 5, "nro_poliza": "POL-001005", "fecha": "2024-06-01", "tipo": "choque ",
     "monto_estimado": "5000", "descripcion": "Espejo", "estado": "En revisión"},
]


class Repositories:
    """All repositories bound to one session."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.agents = AgentRepository(session)
        self.clients = ClientRepository(session)
        self.policies = PolicyRepository(session)
        self.claims = ClaimRepository(session)
        self.vehicles = VehicleRepository(session)

    async def seed(self) -> None:
        for repository, documents in (
            (self.agents, AGENTS),
            (self.clients, CLIENTS),
            (self.policies, POLICIES),
            (self.vehicles, VEHICLES),
            (self.claims, CLAIMS),
        ):
            for document in documents:
                await self.insert_raw(repository, document)

    async def insert_raw(self, repository: DocumentRepository, data: Dict[str, Any]):
        """Store a document exactly as given, keeping its seeded representations."""
        document = repository.model.from_document(data)
        self.session.add(
            DocumentRecord(collection=repository.collection, key=document.key, data=dict(data))
        )
        await self.session.commit()
        return document


# --------------------------------------------------------------------------- #
# Fixtures
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def session():
    """Async session over a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as db_session:
        yield db_session

    await engine.dispose()


@pytest.fixture
def repos(session) -> Repositories:
    return Repositories(session)


@pytest_asyncio.fixture
async def seeded(repos) -> Repositories:
    await repos.seed()
    return repos


@pytest.fixture
def fake_redis() -> fakeredis.FakeAsyncRedis:
    """Redis double with its own server, decoding replies like the app client."""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def expire_keys(fake_redis):
    """Let keys run out their TTL now instead of waiting for it."""

    async def expire(*keys: str) -> None:
        for key in keys:
            await fake_redis.pexpire(key, 1)
        await asyncio.sleep(0.02)
        assert await fake_redis.exists(*keys) == 0

    return expire


@pytest.fixture
def reporting(repos) -> ReportingService:
    return ReportingService(
        repos.agents, repos.clients, repos.policies, repos.claims, repos.vehicles,
        today=lambda: TODAY,
    )


@pytest.fixture
def ranking(fake_redis, repos) -> RankingCache:
    return RankingCache(fake_redis, repos.policies, repos.clients, ttl_seconds=60)


@pytest.fixture
def sequences(fake_redis) -> SequenceAllocator:
    return SequenceAllocator(fake_redis)


@pytest.fixture
def policy_service(repos, sequences, ranking) -> PolicyService:
    return PolicyService(
        repos.policies,
        sequences,
        PolicyValidator(repos.clients, repos.agents),
        ranking,
    )


@pytest.fixture
def client_service(repos, sequences) -> ClientService:
    return ClientService(repos.clients, sequences, ClientValidator(repos.clients))


@pytest.fixture
def claim_service(repos, sequences) -> ClaimService:
    return ClaimService(repos.claims, sequences, ClaimValidator(repos.policies, today=lambda: TODAY))


@pytest.fixture
def policy_payload() -> Dict[str, Any]:
    return {
        "client_id": 1,
        "agent_id": "2",
        "type": "Auto",
        "start_date": "2025-01-01",
        "end_date": "2026-01-01",
        "monthly_premium": "110.00",
        "total_coverage": "1000",
    }
