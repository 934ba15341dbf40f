"""
Tests for the committed schema migrations.

The test settings skip migrations, so the loader is pointed back at the
migration packages on disk.
"""

from django.apps import apps
from django.db.migrations.loader import MigrationLoader
from django.test import override_settings

import pytest

PROJECT_APPS = ["core", "inventory", "sales", "crm", "procurement", "notifications", "ai"]


@pytest.fixture
def loader():
    with override_settings(MIGRATION_MODULES={}):
        yield MigrationLoader(None, ignore_no_migrations=True)


def _field_names(model):
    return {field.name for field in model._meta.local_fields} | {
        field.name for field in model._meta.local_many_to_many
    }


class TestCommittedMigrations:
    @pytest.mark.parametrize("app_label", PROJECT_APPS)
    def test_every_app_has_an_initial_migration(self, loader, app_label):
        assert (app_label, "0001_initial") in loader.disk_migrations
        assert loader.disk_migrations[(app_label, "0001_initial")].initial is True

    def test_loyalty_sale_link_follows_sales(self, loader):
        migration = loader.disk_migrations[("crm", "0002_loyaltytransaction_sale")]
        assert ("sales", "0001_initial") in migration.dependencies
        assert ("crm", "0002_loyaltytransaction_sale") in loader.graph.leaf_nodes()

    @pytest.mark.parametrize("app_label", PROJECT_APPS)
    def test_migrated_state_matches_models(self, loader, app_label):
        state = loader.project_state()
        for model in apps.get_app_config(app_label).get_models():
            migrated = state.apps.get_model(app_label, model._meta.model_name)
            assert _field_names(migrated) == _field_names(model), model.__name__
            assert {index.name for index in migrated._meta.indexes} == {
                index.name for index in model._meta.indexes
            }, model.__name__
            assert migrated._meta.db_table == model._meta.db_table
