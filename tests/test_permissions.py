"""Tests for permission name to IAM role mapping."""

from __future__ import annotations

import pytest

from cloudagent.core.exceptions import ConfigurationError, UnknownPermissionError
from cloudagent.core.permissions import ADMIN_ROLES, map_permissions, parse_permission_names


class TestParsePermissionNames:
    """Tests for parse_permission_names."""

    def test_trims_lowercases_and_dedups(self) -> None:
        assert parse_permission_names(" Compute, gke ,COMPUTE,,storage ") == [
            "compute",
            "gke",
            "storage",
        ]

    @pytest.mark.parametrize("raw", [None, "", " , "])
    def test_empty(self, raw: str | None) -> None:
        assert parse_permission_names(raw) == []


class TestMapPermissions:
    """Tests for map_permissions."""

    def test_three_known_names(self) -> None:
        """compute,gke,storage map to exactly their three roles."""
        assert map_permissions("compute,gke,storage") == [
            "roles/compute.admin",
            "roles/container.admin",
            "roles/storage.admin",
        ]

    def test_duplicate_roles_collapsed(self) -> None:
        """bigquery and bq name the same role."""
        assert map_permissions("bigquery,bq") == ["roles/bigquery.admin"]

    def test_admin_alone(self) -> None:
        assert map_permissions("admin") == list(ADMIN_ROLES)

    def test_admin_wins_over_other_entries(self) -> None:
        """admin anywhere yields exactly the admin superset."""
        assert map_permissions("dns,admin,pubsub") == list(ADMIN_ROLES)
        assert len(map_permissions("compute,admin")) == 4

    def test_no_permissions(self) -> None:
        assert map_permissions(None) == []

    def test_unknown_names_dropped_with_warning(self, capsys: pytest.CaptureFixture[str]) -> None:
        roles = map_permissions("compute,bogus")

        assert roles == ["roles/compute.admin"]
        assert "bogus" in capsys.readouterr().out

    def test_unknown_names_strict(self) -> None:
        with pytest.raises(UnknownPermissionError) as exc_info:
            map_permissions("compute,bogus,nope", strict=True)

        assert exc_info.value.names == ["bogus", "nope"]
        assert isinstance(exc_info.value, ConfigurationError)

    @pytest.mark.parametrize(
        ("name", "role"),
        [
            ("network", "roles/compute.networkAdmin"),
            ("iam", "roles/iam.serviceAccountUser"),
            ("logging", "roles/logging.admin"),
            ("sql", "roles/cloudsql.admin"),
            ("secrets", "roles/secretmanager.admin"),
            ("run", "roles/run.admin"),
            ("functions", "roles/cloudfunctions.admin"),
        ],
    )
    def test_single_mappings(self, name: str, role: str) -> None:
        assert map_permissions(name) == [role]
