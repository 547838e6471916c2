import pytest

from rewards.core.security import decode_access_token, verify_password
from rewards.models import CampusClass, Student, Teacher, UserRole
from rewards.services import auth_service, catalog_service, directory_service
from rewards.services.auth_service import AuthRuleViolation
from rewards.services.directory_service import DirectoryRuleViolation

from .conftest import PASSWORD


@pytest.mark.parametrize(
    ("email", "allowed"),
    [
        ("fatima.k@actvet.gov.ae", True),
        ("  Fatima.K@ACTVET.gov.ae ", True),
        ("master.admin@rewards.local", True),
        ("someone@gmail.com", False),
        ("x@notactvet.gov.ae", False),
        ("x@actvet.gov.ae.example.com", False),
    ],
)
def test_institutional_domain_restriction(email, allowed):
    assert directory_service.email_allowed(email) is allowed


def test_student_provisioning_sets_opening_balance(session, make_class):
    make_class(11, "C")

    student = directory_service.provision_user(
        session,
        role=UserRole.STUDENT,
        name="Mariam",
        email="Mariam.S@actvet.gov.ae",
        password="long-enough-pw",
        class_id="11-C",
        points=250,
    )
    session.commit()

    assert isinstance(student, Student)
    assert student.email == "mariam.s@actvet.gov.ae"
    assert student.grade == 11
    assert student.points == student.initial_points == 250


def test_provisioning_refusals(session, make_class, make_user):
    make_class(11, "C")
    make_user(email="taken@actvet.gov.ae")

    cases = [
        (dict(email="taken@actvet.gov.ae", grade=10), 409),
        (dict(email="new@gmail.com", grade=10), 400),
        (dict(email="new@actvet.gov.ae", grade=10, class_id="11-C"), 400),
        (dict(email="new@actvet.gov.ae"), 422),
    ]
    for fields, status_code in cases:
        with pytest.raises(DirectoryRuleViolation) as excinfo:
            directory_service.provision_user(
                session, role=UserRole.STUDENT, name="New", password="long-enough-pw", **fields
            )
        assert excinfo.value.status_code == status_code


def test_teacher_class_assignment_toggles(session, make_class):
    make_class(10, "A")
    teacher = directory_service.provision_user(
        session,
        role=UserRole.TEACHER,
        name="Mr Haddad",
        email="haddad@actvet.gov.ae",
        password="long-enough-pw",
        subject="Physics",
    )
    assert isinstance(teacher, Teacher)

    directory_service.toggle_teacher_class(session, teacher_id=teacher.id, class_id="10-A")
    assert teacher.assigned_classes == ["10-A"]
    directory_service.toggle_teacher_class(session, teacher_id=teacher.id, class_id="10-A")
    assert teacher.assigned_classes == []


def test_class_ids_derive_from_grade_and_name(session):
    campus_class = directory_service.create_class(session, grade=12, name=" b ")
    assert campus_class.id == "12-B"

    with pytest.raises(DirectoryRuleViolation) as excinfo:
        directory_service.create_class(session, grade=12, name="B")
    assert excinfo.value.status_code == 409


def test_admin_cannot_remove_themselves(session, make_user):
    admin = make_user(UserRole.ADMIN)
    with pytest.raises(DirectoryRuleViolation):
        directory_service.remove_user(session, user_id=admin.id, actor=admin)


def test_sign_in_issues_token(session, make_user):
    student = make_user(email="omar@actvet.gov.ae")

    user, token = auth_service.sign_in(session, email=" OMAR@actvet.gov.ae", password=PASSWORD)

    assert user.id == student.id
    claims = decode_access_token(token)
    assert claims["sub"] == str(student.id)
    assert claims["role"] == "Student"


@pytest.mark.parametrize(
    ("email", "password", "status_code"),
    [
        ("omar@actvet.gov.ae", "wrong-password", 401),
        ("ghost@actvet.gov.ae", PASSWORD, 401),
        ("omar@gmail.com", PASSWORD, 403),
    ],
)
def test_sign_in_refusals(session, make_user, email, password, status_code):
    make_user(email="omar@actvet.gov.ae")

    with pytest.raises(AuthRuleViolation) as excinfo:
        auth_service.sign_in(session, email=email, password=password)
    assert excinfo.value.status_code == status_code


def test_default_catalogue_is_seeded_once(session):
    assert catalog_service.seed_default_levels(session) == 4
    assert catalog_service.seed_default_levels(session) == 0
    levels = catalog_service.list_levels(session)
    assert [(lvl.name, lvl.point_cost, lvl.aed_value) for lvl in levels] == [
        ("Bronze Reward", 500, 50),
        ("Silver Reward", 900, 100),
        ("Gold Reward", 2000, 250),
        ("Platinum Reward", 3500, 500),
    ]


def test_password_change_rehashes(session, make_user):
    student = make_user(email="omar@actvet.gov.ae")
    old_hash = student.password_hash

    auth_service.change_password(
        session,
        student,
        current_password=PASSWORD,
        new_password="solar-panel-2025",
        confirm_password="solar-panel-2025",
    )
    session.commit()

    assert student.password_hash != old_hash
    assert verify_password("solar-panel-2025", student.password_hash)
    user, _ = auth_service.sign_in(session, email="omar@actvet.gov.ae", password="solar-panel-2025")
    assert user.id == student.id


@pytest.mark.parametrize(
    ("current", "new", "confirm", "status_code"),
    [
        (PASSWORD, "solar-panel-2025", "solar-panel-2026", 400),
        ("wrong-password", "solar-panel-2025", "solar-panel-2025", 400),
        (PASSWORD, "short", "short", 422),
    ],
)
def test_password_change_refusals(session, make_user, current, new, confirm, status_code):
    student = make_user()
    old_hash = student.password_hash

    with pytest.raises(AuthRuleViolation) as excinfo:
        auth_service.change_password(
            session, student, current_password=current, new_password=new, confirm_password=confirm
        )
    assert excinfo.value.status_code == status_code
    assert student.password_hash == old_hash


def test_student_profile_edit_moves_class(session, make_class, make_user):
    make_class(10, "A")
    make_class(11, "B")
    admin = make_user(UserRole.ADMIN)
    student = make_user(grade=10, class_id="10-A", email="sara@actvet.gov.ae")

    directory_service.update_user(
        session,
        user_id=student.id,
        role=UserRole.STUDENT,
        changes={"name": "Sara Ahmed", "email": " SARA.A@actvet.gov.ae", "class_id": "11-B"},
        actor=admin,
    )
    session.commit()

    assert student.name == "Sara Ahmed"
    assert student.email == "sara.a@actvet.gov.ae"
    assert (student.grade, student.class_id) == (11, "11-B")

    directory_service.update_user(
        session, user_id=student.id, role=UserRole.STUDENT, changes={"class_id": None}, actor=admin
    )
    assert (student.grade, student.class_id) == (11, None)


def test_teacher_profile_edit(session, make_class, make_user):
    make_class(10, "A")
    admin = make_user(UserRole.ADMIN)
    teacher = make_user(UserRole.TEACHER, subject="Physics", assigned_classes=[])

    directory_service.update_user(
        session,
        user_id=teacher.id,
        role=UserRole.TEACHER,
        changes={"subject": "Chemistry", "assigned_classes": ["10-A", "10-A"], "password": "new-secret-pw"},
        actor=admin,
    )

    assert teacher.subject == "Chemistry"
    assert teacher.assigned_classes == ["10-A"]
    assert verify_password("new-secret-pw", teacher.password_hash)


def test_profile_edit_refusals(session, make_class, make_user):
    make_class(10, "A")
    admin = make_user(UserRole.ADMIN)
    make_user(email="taken@actvet.gov.ae")
    student = make_user(grade=10, class_id="10-A")

    cases = [
        (UserRole.TEACHER, {"name": "X"}, 409),
        (UserRole.STUDENT, {"email": "taken@actvet.gov.ae"}, 409),
        (UserRole.STUDENT, {"email": "x@gmail.com"}, 400),
        (UserRole.STUDENT, {"grade": 12}, 400),
        (UserRole.STUDENT, {"class_id": "12-Z"}, 404),
    ]
    for role, changes, status_code in cases:
        with pytest.raises(DirectoryRuleViolation) as excinfo:
            directory_service.update_user(session, user_id=student.id, role=role, changes=changes, actor=admin)
        assert excinfo.value.status_code == status_code
        session.rollback()


def test_renaming_class_carries_members(session, make_class, make_user, make_task):
    make_class(10, "A")
    student = make_user(grade=10, class_id="10-A")
    teacher = make_user(UserRole.TEACHER, assigned_classes=["10-A"])
    task = make_task(teacher, class_id="10-A")

    renamed = directory_service.update_class(session, class_id="10-A", name=" c ")
    session.commit()

    assert (renamed.id, renamed.grade, renamed.name) == ("10-C", 10, "C")
    assert session.get(CampusClass, "10-A") is None
    assert student.class_id == "10-C"
    assert task.class_id == "10-C"
    assert teacher.assigned_classes == ["10-C"]


def test_class_grade_change_requires_empty_class(session, make_class, make_user):
    make_class(10, "A")
    make_class(10, "B")
    make_user(grade=10, class_id="10-A")

    with pytest.raises(DirectoryRuleViolation) as excinfo:
        directory_service.update_class(session, class_id="10-A", grade=11)
    assert excinfo.value.status_code == 409

    with pytest.raises(DirectoryRuleViolation) as excinfo:
        directory_service.update_class(session, class_id="10-A", name="B")
    assert excinfo.value.status_code == 409

    moved = directory_service.update_class(session, class_id="10-B", grade=11)
    assert moved.id == "11-B"
    assert directory_service.update_class(session, class_id="11-B", name="b") is moved
