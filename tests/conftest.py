import os
from datetime import datetime

os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "s3cr3t")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from bson import ObjectId

from app.core.config import settings
from app.crud.certificates import certificate_crud
from app.crud.enrollments import enrollment_crud
from app.db import database
from app.utils.security import hash_password
from fake_mongo import FakeClient
from helpers import PASSWORD, FakeGateway, FakeRenderer, FakeStorage


@pytest.fixture
async def db(monkeypatch):
    client = FakeClient()
    fake_db = client[settings.DB_NAME]
    monkeypatch.setattr(database, "client", client)
    monkeypatch.setattr(database, "db", fake_db)
    monkeypatch.setattr(settings, "RAZORPAY_KEY_SECRET", "s3cr3t")
    await database.ensure_indexes()
    return fake_db


@pytest.fixture
def gateway(monkeypatch):
    fake = FakeGateway()
    monkeypatch.setattr(enrollment_crud, "gateway", fake)
    return fake


@pytest.fixture
def renderer(monkeypatch):
    fake = FakeRenderer()
    monkeypatch.setattr(certificate_crud, "renderer", fake)
    return fake


@pytest.fixture
def storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(certificate_crud, "storage", fake)
    return fake


# ---------------------------
# FACTORIES
# ---------------------------
@pytest.fixture
def make_student(db):
    async def factory(name="Asha Rao", email=None):
        doc = {
            "name": name,
            "email": email or f"student-{ObjectId()}@example.com",
            "password": hash_password(PASSWORD),
            "avatarUrl": "",
            "createdAt": datetime.utcnow(),
            "updatedAt": datetime.utcnow(),
        }
        await db.students.insert_one(doc)
        return doc

    return factory


@pytest.fixture
def make_company(db):
    async def factory(name="Northwind Academy", email=None):
        doc = {
            "name": name,
            "email": email or f"company-{ObjectId()}@example.com",
            "password": hash_password(PASSWORD),
            "status": "active",
            "createdAt": datetime.utcnow(),
            "updatedAt": datetime.utcnow(),
        }
        await db.companies.insert_one(doc)
        return doc

    return factory


@pytest.fixture
def make_course(db):
    async def factory(company, lessons=4, price=0, offer_certificate=True, status="Published", title="Python Basics"):
        doc = {
            "title": title,
            "description": "Learn the basics",
            "level": "Beginner",
            "tags": ["python"],
            "price": price,
            "offerCertificate": offer_certificate,
            "thumbnailUrl": "https://cdn.example.com/thumb.png",
            "curriculum": [
                {
                    "title": "Section 1",
                    "lessons": [
                        {
                            "lessonId": str(ObjectId()),
                            "title": f"Lesson {i + 1}",
                            "videoUrl": f"https://cdn.example.com/video-{i}.mp4",
                            "videoPublicId": f"video-{i}",
                        }
                        for i in range(lessons)
                    ],
                }
            ],
            "companyId": company["_id"],
            "status": status,
            "createdAt": datetime.utcnow(),
            "updatedAt": datetime.utcnow(),
        }
        await db.courses.insert_one(doc)
        return doc

    return factory
