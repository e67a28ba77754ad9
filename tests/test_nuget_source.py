"""Tests for the NuGet metadata source."""

from unittest.mock import Mock

import pytest
import requests

from solution_sbom._enrichment import ANONYMOUS, Credentials, NuGetSource
from solution_sbom._enrichment.sources.nuget import parse_nuspec
from solution_sbom._graph import ComponentIdentity
from solution_sbom.exceptions import EnrichmentSourceError, RateLimitedError, SourceAuthError

NUSPEC_EXPRESSION = b"""<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
  <metadata minClientVersion="2.12">
    <id>Newtonsoft.Json</id>
    <version>13.0.1</version>
    <authors>James Newton-King</authors>
    <license type="expression">MIT</license>
    <licenseUrl>https://licenses.nuget.org/MIT</licenseUrl>
    <projectUrl>https://www.newtonsoft.com/json</projectUrl>
    <repository type="git" url="https://github.com/JamesNK/Newtonsoft.Json.git" />
  </metadata>
</package>
"""

NUSPEC_LICENSE_URL = b"""<?xml version="1.0"?>
<package xmlns="http://schemas.microsoft.com/packaging/2011/08/nuspec.xsd">
  <metadata>
    <id>Legacy</id>
    <version>1.0.0</version>
    <authors></authors>
    <owners>Contoso</owners>
    <licenseUrl>https://github.com/contoso/legacy/blob/main/LICENSE</licenseUrl>
  </metadata>
</package>
"""

NUSPEC_NO_NAMESPACE = b"""<package><metadata><id>Plain</id><version>1.0</version>
<license type="file">LICENSE.txt</license></metadata></package>"""


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    return Mock(spec=requests.Session)


def response(status_code, content=b""):
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.content = content
    return mock_response


class TestParseNuspec:
    """Tests for nuspec parsing."""

    def test_license_expression(self):
        metadata = parse_nuspec(NUSPEC_EXPRESSION, "nuget.org")
        assert metadata.licenses == ["MIT"]
        assert metadata.vendor == "James Newton-King"
        assert metadata.repository_url == "https://github.com/JamesNK/Newtonsoft.Json.git"
        assert metadata.project_url == "https://www.newtonsoft.com/json"
        assert metadata.field_sources == {"licenses": "nuget.org", "vendor": "nuget.org"}

    def test_license_url_without_expression(self):
        """A non-nuget license URL gives no license, but is kept for later sources."""
        metadata = parse_nuspec(NUSPEC_LICENSE_URL, "nuget.org")
        assert metadata.licenses == []
        assert metadata.license_url == "https://github.com/contoso/legacy/blob/main/LICENSE"
        assert metadata.vendor == "Contoso"
        assert "licenses" not in metadata.field_sources

    def test_file_license_ignored(self):
        metadata = parse_nuspec(NUSPEC_NO_NAMESPACE, "nuget.org")
        assert metadata.licenses == []
        assert metadata.has_data() is False

    def test_invalid_xml(self):
        with pytest.raises(EnrichmentSourceError):
            parse_nuspec(b"<package><metadata>", "nuget.org")

    def test_missing_metadata(self):
        assert parse_nuspec(b"<package />", "nuget.org") is None


class TestNuGetSourceBasics:
    """Test basic properties of NuGetSource."""

    def test_source_name_and_priority(self):
        source = NuGetSource()
        assert source.name == "nuget.org"
        assert source.priority == 10

    def test_supports_nuget_only(self):
        source = NuGetSource()
        assert source.supports(ComponentIdentity("nuget", "A", "1.0")) is True
        assert source.supports(ComponentIdentity("npm", "a", "1.0")) is False

    def test_manifest_url_lowercases(self):
        source = NuGetSource()
        url = source.manifest_url(ComponentIdentity("nuget", "Newtonsoft.Json", "13.0.1-Beta"))
        assert url == (
            "https://api.nuget.org/v3-flatcontainer/newtonsoft.json/13.0.1-beta/newtonsoft.json.nuspec"
        )

    def test_custom_feed(self):
        source = NuGetSource(base_url="https://feed.example.com/v3/flat/")
        url = source.manifest_url(ComponentIdentity("nuget", "A", "1.0"))
        assert url.startswith("https://feed.example.com/v3/flat/a/1.0/")


class TestNuGetSourceFetch:
    """Test fetch behaviour of NuGetSource."""

    def test_fetch_success(self, mock_session):
        mock_session.get.return_value = response(200, NUSPEC_EXPRESSION)
        metadata = NuGetSource().fetch(ComponentIdentity("nuget", "Newtonsoft.Json", "13.0.1"), mock_session, ANONYMOUS)
        assert metadata.licenses == ["MIT"]
        assert mock_session.get.call_args[1]["auth"] is None

    def test_fetch_with_credentials(self, mock_session):
        mock_session.get.return_value = response(200, NUSPEC_EXPRESSION)
        creds = Credentials(username="ci", token="secret")
        NuGetSource().fetch(ComponentIdentity("nuget", "A", "1.0"), mock_session, creds)
        assert mock_session.get.call_args[1]["auth"] == ("ci", "secret")

    def test_fetch_not_found(self, mock_session):
        mock_session.get.return_value = response(404)
        assert NuGetSource().fetch(ComponentIdentity("nuget", "A", "1.0"), mock_session, ANONYMOUS) is None

    @pytest.mark.parametrize(
        "status,error",
        [(401, SourceAuthError), (403, SourceAuthError), (429, RateLimitedError), (500, EnrichmentSourceError)],
    )
    def test_fetch_errors(self, mock_session, status, error):
        mock_session.get.return_value = response(status)
        with pytest.raises(error):
            NuGetSource().fetch(ComponentIdentity("nuget", "A", "1.0"), mock_session, ANONYMOUS)
