"""Unit tests for the Orchestrator — one build from roots to written files."""

from __future__ import annotations

import pytest

from clusterforge.assets.cluster_configuration import ClusterConfiguration
from clusterforge.assets.cluster_id import ClusterID
from clusterforge.assets.imagebased_config import IMAGE_BASED_CONFIG_TEMPLATE, ImageBasedConfig
from clusterforge.assets.install_config import OptionalInstallConfig
from clusterforge.assets.password import KUBEADMIN_PASSWORD_FILENAME, KubeadminPassword
from clusterforge.config import ForgeConfig
from clusterforge.core.asset import qualified_name
from clusterforge.core.asset_store import AssetGenerationError
from clusterforge.core.orchestrator import Orchestrator
from clusterforge.models.build import ResolutionSource
from clusterforge.targets import get_target


# ---------------------------------------------------------------------------
# Test: construction
# ---------------------------------------------------------------------------


class TestOrchestratorConfig:
    def test_defaults_from_config(self, tmp_path):
        config = ForgeConfig(asset_dir=tmp_path, load_from_disk=False)
        orchestrator = Orchestrator(config=config)
        assert orchestrator.directory == tmp_path
        assert orchestrator.load_from_disk is False
        assert orchestrator.sink.base_path == tmp_path

    def test_arguments_override_config(self, tmp_path, asset_dir):
        config = ForgeConfig(asset_dir=tmp_path, load_from_disk=False)
        orchestrator = Orchestrator(asset_dir, load_from_disk=True, config=config)
        assert orchestrator.directory == asset_dir
        assert orchestrator.load_from_disk is True


# ---------------------------------------------------------------------------
# Test: builds
# ---------------------------------------------------------------------------


class TestBuild:
    def test_config_template(self, asset_dir):
        report = Orchestrator(asset_dir).build(get_target("config-template"))

        written = asset_dir / "imagebased-config.yaml"
        assert written.read_text() == IMAGE_BASED_CONFIG_TEMPLATE
        assert report.target == "config-template"
        assert [f.filename for f in report.files] == ["imagebased-config.yaml"]
        assert report.generated_count == 1

    def test_cluster_configuration(self, user_configs):
        report = Orchestrator(user_configs).build(get_target("cluster-configuration"))

        assert (user_configs / "cluster-configuration" / "manifest.json").is_file()
        assert (user_configs / "tls" / "kube-apiserver-complete-server-ca-bundle.crt").is_file()
        assert (user_configs / KUBEADMIN_PASSWORD_FILENAME).is_file()
        sources = report.sources()
        assert sources[qualified_name(ClusterConfiguration)] == ResolutionSource.GENERATED

    def test_only_root_files_are_written(self, user_configs):
        Orchestrator(user_configs).build(get_target("cluster-configuration"))
        assert not (user_configs / "tls" / "kube-apiserver-lb-signer.key").exists()

    def test_duplicate_roots_written_once(self, asset_dir):
        report = Orchestrator(asset_dir).build_assets(KubeadminPassword, KubeadminPassword)
        assert [f.filename for f in report.files] == [KUBEADMIN_PASSWORD_FILENAME]

    def test_non_writable_root_rejected(self, asset_dir):
        with pytest.raises(TypeError, match="not writable"):
            Orchestrator(asset_dir).build_assets(ClusterID)  # type: ignore[arg-type]

    def test_failed_build_writes_nothing(self, asset_dir):
        with pytest.raises(AssetGenerationError, match="missing configuration"):
            Orchestrator(asset_dir).build(get_target("config-image"))
        assert list(asset_dir.iterdir()) == []

    def test_no_load_regenerates(self, asset_dir, write_asset_file):
        write_asset_file(KUBEADMIN_PASSWORD_FILENAME, "abcde-fghij-klmno-pqrst")

        loaded = Orchestrator(asset_dir).build_assets(KubeadminPassword)
        assert loaded.loaded_count == 1
        assert (asset_dir / KUBEADMIN_PASSWORD_FILENAME).read_text() == "abcde-fghij-klmno-pqrst"

        regenerated = Orchestrator(asset_dir, load_from_disk=False).build_assets(KubeadminPassword)
        assert regenerated.generated_count == 1
        assert (asset_dir / KUBEADMIN_PASSWORD_FILENAME).read_text() != "abcde-fghij-klmno-pqrst"

    def test_no_load_still_reads_user_configs(self, user_configs):
        report = Orchestrator(user_configs, load_from_disk=False).build(get_target("config-image"))

        assert (user_configs / "imagebasedconfig.tar").is_file()
        sources = report.sources()
        assert sources[qualified_name(OptionalInstallConfig)] == ResolutionSource.LOADED
        assert sources[qualified_name(ImageBasedConfig)] == ResolutionSource.LOADED
        assert sources[qualified_name(KubeadminPassword)] == ResolutionSource.GENERATED

    def test_custom_fetcher(self, asset_dir, make_fetcher):
        fetcher = make_fetcher({KUBEADMIN_PASSWORD_FILENAME: "abcde-fghij-klmno-pqrst"})
        report = Orchestrator(asset_dir, fetcher=fetcher).build_assets(KubeadminPassword)

        assert fetcher.requested == [KUBEADMIN_PASSWORD_FILENAME]
        assert report.loaded_count == 1
        assert (asset_dir / KUBEADMIN_PASSWORD_FILENAME).read_text() == "abcde-fghij-klmno-pqrst"
