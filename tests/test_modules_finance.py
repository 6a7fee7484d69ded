"""
Modules and the payment rows their completion creates.

Tests cover:
  - Module CRUD and validation
  - Pending → Started → Complete, commit link rule, 409 on skips
  - Exactly one Finance row per completed module
  - Project progress recomputation
  - Finance listing, report summary and (re)processing
"""

from datetime import date

import pytest

from projecthub.models import db
from projecthub.models.finance import Finance
from projecthub.models.project import Module, Project, validate_module_transition
from projecthub.services.module_service import recompute_project_progress

MODULES = "/api/v1/modules"
FINANCE = "/api/v1/finance"
COMMIT = "https://git.acme.io/payroll/commit/3f2a9c1"


@pytest.fixture()
def project(ceo):
    p = Project(name="Payroll revamp", description="Rebuild payroll", duration="3 months",
                status="Approved", created_by=ceo.id)
    db.session.add(p)
    db.session.commit()
    return p


def _create_module(client, headers, project_id, name="Payslips", cost="1500.50", **kw):
    body = {"name": name, "description": "Generate payslips", "start_date": "2026-01-05",
            "end_date": "2026-02-05", "cost": cost, "currency": "usd",
            "project_id": project_id, **kw}
    return client.post(MODULES, json=body, headers=headers)


def _module_id(res):
    return res.get_json()["module"]["id"]


def _start(client, headers, module_id):
    return client.post(f"{MODULES}/{module_id}/start", headers=headers)


def _complete(client, headers, module_id, commit_link=COMMIT):
    return client.post(f"{MODULES}/{module_id}/complete", json={"commit_link": commit_link},
                       headers=headers)


def _completed_module(client, headers, project_id, **kw):
    mid = _module_id(_create_module(client, headers, project_id, **kw))
    _start(client, headers, mid)
    _complete(client, headers, mid)
    return mid


# ═══════════════════════════════════════════════════════════════
# Module lifecycle
# ═══════════════════════════════════════════════════════════════

class TestModuleTransitions:
    def test_table(self):
        assert validate_module_transition("Pending", "Started")
        assert validate_module_transition("Started", "Complete")
        assert not validate_module_transition("Pending", "Complete")
        assert not validate_module_transition("Complete", "Started")
        assert not validate_module_transition("Started", "Pending")


class TestModuleCrud:
    def test_create(self, client, developer, developer_profile, project, auth_headers):
        res = _create_module(client, auth_headers(developer), project.id)
        assert res.status_code == 201
        module = res.get_json()["module"]
        assert module["status"] == "Pending"
        assert module["cost"] == 1500.50
        assert module["currency"] == "USD"
        assert module["created_by"] == developer_profile.id

    def test_unknown_project(self, client, developer, auth_headers):
        res = _create_module(client, auth_headers(developer), 999)
        assert res.status_code == 400
        assert res.get_json()["error"] == "Project does not exist."

    @pytest.mark.parametrize("override", [
        {"cost": "-5"},
        {"cost": "lots"},
        {"currency": "dollars"},
        {"end_date": "2025-12-31"},
        {"start_date": "not-a-date"},
    ])
    def test_invalid_fields(self, client, developer, project, auth_headers, override):
        res = _create_module(client, auth_headers(developer), project.id, **override)
        assert res.status_code == 400
        assert Module.query.count() == 0

    def test_only_developers_create(self, client, ceo, project, auth_headers):
        assert _create_module(client, auth_headers(ceo), project.id).status_code == 403

    def test_list_by_project(self, client, developer, ceo, project, auth_headers):
        _create_module(client, auth_headers(developer), project.id, name="A")
        _create_module(client, auth_headers(developer), project.id, name="B")
        res = client.get(f"{MODULES}?project_id={project.id}", headers=auth_headers(ceo))
        assert [m["name"] for m in res.get_json()["modules"]] == ["A", "B"]

    def test_update_details(self, client, developer, project, auth_headers):
        mid = _module_id(_create_module(client, auth_headers(developer), project.id))
        res = client.put(f"{MODULES}/{mid}", json={"notes": "blocked on HR", "cost": 200},
                         headers=auth_headers(developer))
        assert res.status_code == 200
        module = res.get_json()["module"]
        assert module["notes"] == "blocked on HR"
        assert module["cost"] == 200.0

    def test_cost_frozen_after_completion(self, client, developer, project, auth_headers):
        mid = _completed_module(client, auth_headers(developer), project.id)
        res = client.put(f"{MODULES}/{mid}", json={"cost": 1}, headers=auth_headers(developer))
        assert res.status_code == 400
        assert float(db.session.get(Module, mid).cost) == 1500.50

    def test_delete_keeps_project(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        done = _completed_module(client, h, project.id, name="Done")
        other = _module_id(_create_module(client, h, project.id, name="Other"))
        assert db.session.get(Project, project.id).progress == 50

        res = client.delete(f"{MODULES}/{other}", headers=h)
        assert res.status_code == 200
        assert res.get_json()["message"] == "Module deleted successfully."
        assert db.session.get(Project, project.id).progress == 100

        client.delete(f"{MODULES}/{done}", headers=h)
        assert db.session.get(Project, project.id) is not None
        assert db.session.get(Project, project.id).progress == 0
        assert Finance.query.count() == 0


class TestModuleWorkflow:
    def test_start_then_complete(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _module_id(_create_module(client, h, project.id))
        assert _start(client, h, mid).get_json()["module"]["status"] == "Started"

        res = _complete(client, h, mid)
        assert res.status_code == 200
        module = res.get_json()["module"]
        assert module["status"] == "Complete"
        assert module["commit_link"] == COMMIT
        assert module["marked_complete_date"] == date.today().isoformat()

    def test_commit_link_required(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _module_id(_create_module(client, h, project.id))
        _start(client, h, mid)
        res = _complete(client, h, mid, commit_link="  ")
        assert res.status_code == 400
        assert res.get_json()["error"] == "A commit link is required to mark a module as complete."
        assert db.session.get(Module, mid).status == "Started"
        assert Finance.query.count() == 0

    def test_cannot_skip_started(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _module_id(_create_module(client, h, project.id))
        res = _complete(client, h, mid)
        assert res.status_code == 409
        assert Finance.query.count() == 0

    def test_cannot_go_back(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _completed_module(client, h, project.id)
        res = client.put(f"{MODULES}/{mid}", json={"status": "Started"}, headers=h)
        assert res.status_code == 409

    def test_unknown_status(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _module_id(_create_module(client, h, project.id))
        res = client.put(f"{MODULES}/{mid}", json={"status": "Done"}, headers=h)
        assert res.status_code == 400

    def test_status_through_update(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _module_id(_create_module(client, h, project.id))
        client.put(f"{MODULES}/{mid}", json={"status": "Started"}, headers=h)
        res = client.put(f"{MODULES}/{mid}", headers=h,
                         json={"status": "Complete", "commit_link": COMMIT, "notes": "shipped"})
        assert res.status_code == 200
        module = res.get_json()["module"]
        assert module["status"] == "Complete"
        assert module["notes"] == "shipped"
        assert Finance.query.count() == 1

    def test_progress_recomputed(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        ids = [_module_id(_create_module(client, h, project.id, name=n)) for n in "ABC"]
        _start(client, h, ids[0])
        _complete(client, h, ids[0])
        assert db.session.get(Project, project.id).progress == 33
        _start(client, h, ids[1])
        _complete(client, h, ids[1])
        assert db.session.get(Project, project.id).progress == 67

    def test_unknown_module(self, client, developer, auth_headers):
        assert _start(client, auth_headers(developer), 999).status_code == 404

    def test_commit_link_must_be_text(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _module_id(_create_module(client, h, project.id))
        _start(client, h, mid)
        res = _complete(client, h, mid, commit_link=["abc"])
        assert res.status_code == 400
        assert db.session.get(Module, mid).status == "Started"


class TestCompletedProject:
    @pytest.fixture()
    def closed(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        done = _completed_module(client, h, project.id, name="Done")
        project.status = "Completed"
        project.progress = 100
        db.session.commit()
        return done

    def test_refuses_new_modules(self, client, developer, project, closed, auth_headers):
        res = _create_module(client, auth_headers(developer), project.id, name="Late")
        assert res.status_code == 409
        assert res.get_json()["error"] == (
            "Modules of a completed project cannot be added or removed."
        )
        assert Module.query.count() == 1
        assert db.session.get(Project, project.id).progress == 100

    def test_refuses_deletes(self, client, developer, project, closed, auth_headers):
        res = client.delete(f"{MODULES}/{closed}", headers=auth_headers(developer))
        assert res.status_code == 409
        assert db.session.get(Module, closed) is not None
        assert Finance.query.count() == 1

    def test_progress_stays_at_100(self, project, closed):
        # a module left Pending when the project was closed
        db.session.add(Module(name="Leftover", description="x", cost=1, currency="USD",
                              status="Pending", project_id=project.id))
        db.session.commit()
        assert recompute_project_progress(db.session.get(Project, project.id)) == 100


# ═══════════════════════════════════════════════════════════════
# Finance row creation
# ═══════════════════════════════════════════════════════════════

class TestFinanceCreation:
    def test_one_row_on_completion(self, client, developer, project, auth_headers):
        mid = _completed_module(client, auth_headers(developer), project.id)
        rows = Finance.query.filter_by(module_id=mid).all()
        assert len(rows) == 1
        assert rows[0].payment_status == "Pending"
        assert float(rows[0].module_cost) == 1500.50
        assert rows[0].currency == "USD"

    def test_recompletion_keeps_single_row(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _completed_module(client, h, project.id)
        res = _complete(client, h, mid, commit_link=COMMIT + "-fix")
        assert res.status_code == 200
        assert res.get_json()["module"]["commit_link"] == COMMIT + "-fix"
        assert Finance.query.filter_by(module_id=mid).count() == 1

    def test_no_row_before_completion(self, client, developer, project, auth_headers):
        h = auth_headers(developer)
        mid = _module_id(_create_module(client, h, project.id))
        _start(client, h, mid)
        assert Finance.query.count() == 0

    def test_listener_on_direct_status_set(self, project):
        module = Module(name="m", description="d", cost=75, currency="EUR",
                        status="Started", project_id=project.id)
        db.session.add(module)
        db.session.commit()

        module.status = "Complete"
        db.session.commit()
        module.status = "Complete"
        db.session.commit()
        assert Finance.query.filter_by(module_id=module.id).count() == 1


# ═══════════════════════════════════════════════════════════════
# Finance processing
# ═══════════════════════════════════════════════════════════════

class TestFinanceProcessing:
    def test_pending_listing(self, client, developer, developer_profile, finance, project,
                             auth_headers):
        _completed_module(client, auth_headers(developer), project.id)
        res = client.get(FINANCE, headers=auth_headers(finance))
        assert res.status_code == 200
        payments = res.get_json()["payments"]
        assert len(payments) == 1
        assert payments[0]["module_name"] == "Payslips"
        assert payments[0]["project_name"] == "Payroll revamp"
        assert payments[0]["developer_email"] == "dev@acme.io"
        assert payments[0]["commit_link"] == COMMIT

    def test_unknown_status_filter(self, client, finance, auth_headers):
        assert client.get(f"{FINANCE}?status=Lost",
                          headers=auth_headers(finance)).status_code == 400

    def test_pay(self, client, developer, finance, project, auth_headers):
        _completed_module(client, auth_headers(developer), project.id)
        fid = Finance.query.one().id
        res = client.patch(f"{FINANCE}/{fid}", headers=auth_headers(finance),
                           json={"payment_status": "Paid", "amount": 1500.5, "notes": "wire"})
        assert res.status_code == 200
        body = res.get_json()
        assert body["message"] == "Payment paid successfully."
        assert body["payment"]["processed_by"] == "finance@acme.io"
        assert body["payment"]["amount"] == 1500.5
        assert body["payment"]["processed_date"] == date.today().isoformat()

    def test_reprocessing_overwrites(self, client, developer, finance, project, auth_headers):
        _completed_module(client, auth_headers(developer), project.id)
        fid = Finance.query.one().id
        h = auth_headers(finance)
        client.patch(f"{FINANCE}/{fid}", json={"payment_status": "Paid", "amount": 100},
                     headers=h)
        res = client.patch(f"{FINANCE}/{fid}", json={"payment_status": "Rejected"}, headers=h)
        assert res.status_code == 200
        assert res.get_json()["payment"]["payment_status"] == "Rejected"
        assert res.get_json()["payment"]["amount"] == 0.0

    @pytest.mark.parametrize("body", [
        {"payment_status": "Pending"},
        {"payment_status": "Paid", "amount": -1},
        {"payment_status": "Paid", "amount": "abc"},
        {},
    ])
    def test_invalid_processing(self, client, developer, finance, project, auth_headers, body):
        _completed_module(client, auth_headers(developer), project.id)
        fid = Finance.query.one().id
        res = client.patch(f"{FINANCE}/{fid}", json=body, headers=auth_headers(finance))
        assert res.status_code == 400
        assert db.session.get(Finance, fid).payment_status == "Pending"

    def test_unknown_payment(self, client, finance, auth_headers):
        res = client.patch(f"{FINANCE}/999", json={"payment_status": "Paid"},
                           headers=auth_headers(finance))
        assert res.status_code == 404
        assert res.get_json()["error"] == "Payment record not found."

    def test_report_summary(self, client, developer, finance, project, auth_headers):
        h = auth_headers(developer)
        _completed_module(client, h, project.id, name="A", cost="100")
        _completed_module(client, h, project.id, name="B", cost="250")
        _completed_module(client, h, project.id, name="C", cost="50")
        a, b, _ = [f.id for f in Finance.query.order_by(Finance.id)]
        fh = auth_headers(finance)
        client.patch(f"{FINANCE}/{a}", json={"payment_status": "Paid", "amount": 90}, headers=fh)
        client.patch(f"{FINANCE}/{b}", json={"payment_status": "Rejected"}, headers=fh)

        res = client.get(f"{FINANCE}/report", headers=fh)
        assert res.status_code == 200
        body = res.get_json()
        assert len(body["payments"]) == 3
        assert body["summary"] == {
            "total_payments": 3,
            "paid_count": 1,
            "pending_count": 1,
            "rejected_count": 1,
            "total_paid_amount": 90.0,
            "total_pending_amount": 50.0,
            "total_module_costs": 400.0,
        }

    def test_finance_role_only(self, client, ceo, auth_headers):
        assert client.get(FINANCE, headers=auth_headers(ceo)).status_code == 403
