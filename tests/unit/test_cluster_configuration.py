"""Tests for the seed reconfiguration manifest asset."""

from __future__ import annotations

import json

import pytest
import yaml

from clusterforge.assets.cluster_configuration import (
    CLUSTER_CONFIGURATION_FILENAME,
    DEFAULT_CHRONY_CONF,
    ClusterConfiguration,
    chrony_conf_with_additional_ntp_sources,
)
from clusterforge.assets.cluster_id import ClusterID
from clusterforge.assets.password import KubeadminPassword
from clusterforge.assets.tls import (
    AdminKubeConfigSignerCertKey,
    IngressOperatorSignerCertKey,
    KubeAPIServerLBSignerCertKey,
)
from clusterforge.core.asset import PersistedStateError
from clusterforge.core.asset_store import AssetStore
from clusterforge.crypto import pem_encode, verify_password

TRUST_BUNDLE = pem_encode("CERTIFICATE", b"user-ca").decode()


@pytest.fixture
def user_fetcher(make_fetcher, install_config_yaml, image_based_config_yaml):
    """Factory fixture: a fetcher holding both user configs, optionally edited."""

    def _factory(install_config=None, image_based_config=None):
        ic = yaml.safe_load(install_config_yaml)
        ibc = yaml.safe_load(image_based_config_yaml)
        ic.update(install_config or {})
        ibc.update(image_based_config or {})
        return make_fetcher(
            {
                "install-config.yaml": yaml.safe_dump(ic),
                "imagebased-config.yaml": yaml.safe_dump(ibc),
            }
        )

    return _factory


def _generate(fetcher, *seeds) -> tuple[ClusterConfiguration, AssetStore]:
    store = AssetStore(fetcher=fetcher)
    store.add(*seeds)
    (asset,) = store.fetch(ClusterConfiguration)
    return asset, store


class TestGenerate:
    def test_manifest_contents(self, user_fetcher):
        asset, store = _generate(user_fetcher())
        config = asset.config
        cluster_id = store.resolved.get(ClusterID)

        assert config.api_version == 1
        assert config.cluster_name == "ocp-ibi-cluster-0"
        assert config.base_domain == "testing.com"
        assert config.hostname == "somehostname"
        assert config.release_registry == "quay.io"
        assert config.machine_network == "10.10.11.0/24"
        assert config.cluster_id == cluster_id.uuid
        assert config.infra_id == cluster_id.infra_id
        assert config.ssh_key.startswith("ssh-ed25519 ")
        assert yaml.safe_load(config.raw_nm_state_config)["interfaces"][0]["name"] == "eth0"
        assert config.chrony_config == ""
        assert config.proxy is None
        assert config.additional_trust_bundle is None

    def test_crypto_material_from_signers(self, user_fetcher):
        asset, store = _generate(user_fetcher())
        crypto = asset.config.kubeconfig_crypto_retention

        lb = store.resolved.get(KubeAPIServerLBSignerCertKey)
        admin = store.resolved.get(AdminKubeConfigSignerCertKey)
        ingress = store.resolved.get(IngressOperatorSignerCertKey)
        serving = crypto.kube_api_crypto.serving_crypto
        assert serving.loadbalancer_external_signer_private_key == lb.key().decode()
        assert crypto.kube_api_crypto.client_auth_crypto.admin_ca_certificate == admin.cert().decode()
        assert crypto.ingress_crypto.ingress_ca == ingress.key().decode()

    def test_password_hash_from_seeded_password(self, user_fetcher):
        password = KubeadminPassword()
        password._set("abcde-fghij-klmno-pqrst")
        asset, _ = _generate(user_fetcher(), password)

        assert asset.config.kubeadmin_password_hash == password.password_hash
        assert verify_password("abcde-fghij-klmno-pqrst", asset.config.kubeadmin_password_hash)

    def test_wire_format(self, user_fetcher):
        asset, _ = _generate(user_fetcher())
        (file,) = asset.files()
        assert file.filename == CLUSTER_CONFIGURATION_FILENAME

        document = json.loads(file.data)
        assert document["api_version"] == 1
        assert document["machine_network"] == "10.10.11.0/24"
        crypto = document["KubeconfigCryptoRetention"]
        assert set(crypto) == {"KubeAPICrypto", "IngresssCrypto"}
        assert set(crypto["KubeAPICrypto"]) == {"ServingCrypto", "ClientAuthCrypto"}
        assert "proxy" not in document
        assert "additionalTrustBundle" not in document

    def test_chrony_config_with_ntp_sources(self, user_fetcher):
        fetcher = user_fetcher(image_based_config={"additionalNTPSources": ["10.0.0.1"]})
        asset, _ = _generate(fetcher)
        assert asset.config.chrony_config == DEFAULT_CHRONY_CONF + "\nserver 10.0.0.1 iburst"

    def test_proxy_and_trust_bundle(self, user_fetcher):
        fetcher = user_fetcher(
            install_config={
                "proxy": {"httpProxy": "http://proxy:3128", "noProxy": ".example.com"},
                "additionalTrustBundle": TRUST_BUNDLE,
            }
        )
        asset, _ = _generate(fetcher)

        assert asset.config.proxy.http_proxy == "http://proxy:3128"
        assert asset.config.proxy.no_proxy == ".example.com"
        bundle = asset.config.additional_trust_bundle
        assert bundle.user_ca_bundle == TRUST_BUNDLE
        assert bundle.proxy_configmap_name == "user-ca-bundle"
        assert bundle.proxy_configmap_bundle == TRUST_BUNDLE

        document = json.loads(asset.files()[0].data)
        assert document["proxy"]["httpProxy"] == "http://proxy:3128"
        assert document["additionalTrustBundle"]["proxyConfigmapName"] == "user-ca-bundle"

    def test_trust_bundle_without_proxy(self, user_fetcher):
        fetcher = user_fetcher(install_config={"additionalTrustBundle": TRUST_BUNDLE})
        asset, _ = _generate(fetcher)

        bundle = asset.config.additional_trust_bundle
        assert bundle.user_ca_bundle == TRUST_BUNDLE
        assert bundle.proxy_configmap_name == ""

    def test_trust_bundle_policy_always(self, user_fetcher):
        fetcher = user_fetcher(
            install_config={
                "additionalTrustBundle": TRUST_BUNDLE,
                "additionalTrustBundlePolicy": "Always",
            }
        )
        asset, _ = _generate(fetcher)
        assert asset.config.additional_trust_bundle.proxy_configmap_name == "user-ca-bundle"

    @pytest.mark.parametrize("missing", ["install-config.yaml", "imagebased-config.yaml"])
    def test_empty_without_user_config(self, user_fetcher, missing):
        fetcher = user_fetcher()
        del fetcher.files[missing]
        asset, _ = _generate(fetcher)

        assert asset.config is None
        assert asset.files() == []


class TestLoad:
    def test_round_trip(self, user_fetcher, make_fetcher):
        generated, _ = _generate(user_fetcher())
        loaded = ClusterConfiguration()
        fetcher = make_fetcher({CLUSTER_CONFIGURATION_FILENAME: generated.files()[0].data})

        assert loaded.load(fetcher)
        assert loaded.config == generated.config
        assert loaded.files() == generated.files()

    def test_absent(self, make_fetcher):
        assert not ClusterConfiguration().load(make_fetcher())

    def test_invalid_json(self, make_fetcher):
        fetcher = make_fetcher({CLUSTER_CONFIGURATION_FILENAME: "not-json"})
        with pytest.raises(PersistedStateError) as exc_info:
            ClusterConfiguration().load(fetcher)
        assert str(exc_info.value) == (
            "failed to unmarshal cluster-configuration/manifest.json: invalid JSON syntax"
        )

    def test_unknown_field(self, make_fetcher):
        fetcher = make_fetcher({CLUSTER_CONFIGURATION_FILENAME: '{"some-unknown-field": 1}'})
        with pytest.raises(PersistedStateError) as exc_info:
            ClusterConfiguration().load(fetcher)
        assert str(exc_info.value) == (
            "failed to unmarshal cluster-configuration/manifest.json: "
            'unknown field "some-unknown-field"'
        )

    def test_attribute_name_for_aliased_section(self, user_fetcher, make_fetcher):
        generated, _ = _generate(user_fetcher())
        document = json.loads(generated.files()[0].data)
        document["kubeconfig_crypto_retention"] = document.pop("KubeconfigCryptoRetention")
        fetcher = make_fetcher({CLUSTER_CONFIGURATION_FILENAME: json.dumps(document)})

        with pytest.raises(PersistedStateError) as exc_info:
            ClusterConfiguration().load(fetcher)
        assert str(exc_info.value) == (
            "failed to unmarshal cluster-configuration/manifest.json: "
            'unknown field "kubeconfig_crypto_retention"'
        )


def test_chrony_conf_lists_every_source():
    conf = chrony_conf_with_additional_ntp_sources(["a.example.com", "10.0.0.1"])
    assert conf.endswith("\nserver a.example.com iburst\nserver 10.0.0.1 iburst")
    assert conf.startswith(DEFAULT_CHRONY_CONF)
