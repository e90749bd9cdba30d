import json

from sqlalchemy import select

from app.core.config import get_settings
from app.core.security import create_access_token, decode_access_token, hash_password, verify_password
from app.models.role import Role
from app.models.user import User
from app.services.org_settings import read_org_settings
from app.services.rbac import has_permission, parse_permissions
from app.services.seed import seed_initial_data


def test_seed_creates_roles_admin_and_settings(db):
    seed_initial_data(db)
    seed_initial_data(db)

    roles = {row.name: row for row in db.scalars(select(Role)).all()}
    assert set(roles) == {"ADMIN", "MANAGER", "EMPLOYEE"}
    assert not has_permission(roles["EMPLOYEE"].permissions, "requests:review")
    assert has_permission(roles["MANAGER"].permissions, "requests:review")
    assert not has_permission(roles["MANAGER"].permissions, "reimbursements:pay")

    users = db.scalars(select(User)).all()
    assert len(users) == 1
    assert users[0].email == get_settings().bootstrap_admin_email
    assert users[0].role_name == "ADMIN"

    org = read_org_settings(db)
    assert org["currency"] == "INR"
    assert org["reimbursement_limits"]["Travel"] == "5000"


def test_parse_permissions_tolerates_bad_json():
    assert parse_permissions("not json") == []
    assert parse_permissions(json.dumps({"a": 1})) == []


def test_password_hashing():
    hashed = hash_password("s3cret-pass")
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("other", hashed)


def test_token_claims():
    token = create_access_token(user_id=42, role="MANAGER", token_version=3)
    claims = decode_access_token(token)

    assert claims["sub"] == "42"
    assert claims["role"] == "MANAGER"
    assert claims["ver"] == 3
    assert decode_access_token(token + "x") is None
