from stockledger.models import AdminUser
from stockledger.services import settings_service


def test_settings_seed_and_show(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["settings", "seed"])
    assert result.exit_code == 0
    assert "business_name" in result.output

    again = runner.invoke(args=["settings", "seed"])
    assert "Nothing to seed" in again.output

    settings_service.update_settings({"business_name": "Spark"})
    shown = runner.invoke(args=["settings", "show"])
    assert "business_name = Spark" in shown.output


def test_admins_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "admins", "create",
        "--email", "Owner@Shop.test",
        "--name", "Owner",
        "--password", "Sparkle123!",
    ])
    assert result.exit_code == 0, result.output
    assert db_session.query(AdminUser).filter_by(email="owner@shop.test").count() == 1

    listing = runner.invoke(args=["admins", "list"])
    assert "owner@shop.test" in listing.output


def test_admins_create_rejects_weak_password(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["admins", "create", "--email", "x@shop.test", "--password", "short"])
    assert result.exit_code != 0
    assert "Password validation failed" in result.output
