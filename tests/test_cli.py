from models.business import Business
from models.capacity_unit import CapacityUnit


def test_seed_demo_is_idempotent(app):
    runner = app.test_cli_runner()

    first = runner.invoke(args=["seed-demo"])
    second = runner.invoke(args=["seed-demo"])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert "reception" in first.output
    assert "consultation" in first.output
    assert Business.query.count() == 1
    assert CapacityUnit.query.count() == 2
