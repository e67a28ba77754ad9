"""Tests for license normalization."""

import pytest

from solution_sbom._enrichment.license_utils import (
    is_license_text,
    license_from_url,
    normalize_license,
    normalize_license_list,
    validate_spdx_expression,
)


class TestValidateSpdxExpression:
    """Tests for validate_spdx_expression."""

    @pytest.mark.parametrize("value", ["MIT", "Apache-2.0", "MIT OR Apache-2.0", "LicenseRef-Custom"])
    def test_valid(self, value):
        assert validate_spdx_expression(value) is True

    @pytest.mark.parametrize("value", ["", "Some Proprietary License", "LicenseRef-has space"])
    def test_invalid(self, value):
        assert validate_spdx_expression(value) is False


class TestNormalizeLicense:
    """Tests for normalize_license."""

    def test_spdx_kept(self):
        assert normalize_license("MIT") == "MIT"
        assert normalize_license("  Apache-2.0 ") == "Apache-2.0"

    def test_expression_kept(self):
        assert normalize_license("MIT OR Apache-2.0") == "MIT OR Apache-2.0"

    @pytest.mark.parametrize("value", [None, "", "   ", "NOASSERTION", "none"])
    def test_no_information(self, value):
        assert normalize_license(value) is None

    def test_exact_alias(self):
        assert normalize_license("The MIT License") == "MIT"
        assert normalize_license("Apache License, Version 2.0") == "Apache-2.0"

    def test_unknown_preserved(self):
        assert normalize_license("Contoso EULA") == "Contoso EULA"

    def test_license_text_ignored(self):
        assert normalize_license("Permission is hereby granted " * 10) is None


class TestLicenseFromUrl:
    """Tests for license_from_url."""

    def test_nuget_license_url(self):
        assert license_from_url("https://licenses.nuget.org/MIT") == "MIT"

    def test_nuget_license_expression_url(self):
        assert license_from_url("https://licenses.nuget.org/MIT%20OR%20Apache-2.0") == "MIT OR Apache-2.0"

    def test_other_urls_not_translated(self):
        assert license_from_url("https://github.com/JamesNK/Newtonsoft.Json/blob/master/LICENSE.md") is None
        assert license_from_url("https://aka.ms/deprecateLicenseUrl") is None

    def test_empty(self):
        assert license_from_url(None) is None
        assert license_from_url("https://licenses.nuget.org/") is None


class TestHelpers:
    """Tests for list normalization and license text detection."""

    def test_normalize_list_deduplicates(self):
        assert normalize_license_list(["MIT", None, "MIT License", "Apache-2.0"]) == ["MIT", "Apache-2.0"]

    def test_is_license_text(self):
        assert is_license_text("a\nb\nc\nd") is True
        assert is_license_text("MIT") is False
        assert is_license_text("") is False
