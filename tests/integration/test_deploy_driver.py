"""Integration tests for the deployment driver and its command line."""

import logging
from pathlib import Path

import pytest
import responses

from twitter_deployments import run_deployment
from twitter_deployments.cli import main
from twitter_deployments.config import load_config
from twitter_deployments.exceptions import ConfigurationError, RPCError, VerificationError
from twitter_deployments.types import DeploymentStatus

from conftest import DEPLOYER_KEY, EXPLORER_API_URL, FIRST_CONTRACT_ADDRESS, MUMBAI_URL

SUCCESS_LINE = f"Twitter has been deployed to {FIRST_CONTRACT_ADDRESS}"


@pytest.fixture
def project_dir(tmp_path: Path, contracts_dir: Path, monkeypatch) -> Path:
    """Run from a project root that holds contracts/."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def mumbai_environ(clean_env, monkeypatch, mumbai_env):
    """Export the Mumbai settings into os.environ."""
    for name, value in mumbai_env.items():
        monkeypatch.setenv(name, value)


class TestRunDeployment:
    """Test run_deployment with explicit configuration."""

    def test_deploys_and_reports(
        self, fake_node, toolchain_config, contracts_dir, artifacts_dir, fake_solc, capsys
    ):
        """Test the full compile/deploy/confirm flow."""
        result = run_deployment(
            toolchain_config,
            "mumbai",
            "Twitter",
            contracts_dir=contracts_dir,
            artifacts_dir=artifacts_dir,
        )

        assert result.status is DeploymentStatus.CONFIRMED
        assert result.address == FIRST_CONTRACT_ADDRESS
        assert capsys.readouterr().out.splitlines() == [SUCCESS_LINE]
        assert fake_node.calls.count("eth_sendRawTransaction") == 1

    def test_missing_key_fails_before_compiling(
        self, fake_node, contracts_dir, artifacts_dir, fake_solc
    ):
        """Test that a missing key is reported before any work is done."""
        config = load_config(env={"ALCHEMY_MUMBAI_URL": MUMBAI_URL})

        with pytest.raises(ConfigurationError):
            run_deployment(
                config, "mumbai", contracts_dir=contracts_dir, artifacts_dir=artifacts_dir
            )
        assert fake_solc == []
        assert fake_node.calls == []

    def test_verify_needs_api_key(self, fake_node, contracts_dir, artifacts_dir, fake_solc):
        """Test that --verify without an API key fails up front."""
        config = load_config(
            env={"ALCHEMY_MUMBAI_URL": MUMBAI_URL, "MUMBAI_PRIVATE_KEY": DEPLOYER_KEY}
        )

        with pytest.raises(ConfigurationError):
            run_deployment(
                config,
                "mumbai",
                verify=True,
                contracts_dir=contracts_dir,
                artifacts_dir=artifacts_dir,
            )
        assert fake_node.sent == []

    def test_verify_needs_explorer(
        self, fake_node, contracts_dir, artifacts_dir, fake_solc, capsys
    ):
        """Test that --verify on a network without explorer fails before deploying."""
        config = load_config(
            env={"LOCALHOST_PRIVATE_KEY": DEPLOYER_KEY, "MUMBAI_API_KEY": "TESTAPIKEY"}
        )

        with pytest.raises(VerificationError, match="no block explorer"):
            run_deployment(
                config,
                "localhost",
                verify=True,
                contracts_dir=contracts_dir,
                artifacts_dir=artifacts_dir,
            )
        assert fake_solc == []
        assert capsys.readouterr().out == ""

    def test_verifies_after_confirmation(
        self, fake_node, mocked_responses, toolchain_config, contracts_dir, artifacts_dir, fake_solc
    ):
        """Test that sources are submitted once the deployment is confirmed."""
        mocked_responses.add(
            responses.POST, EXPLORER_API_URL, json={"status": "1", "result": "guid-1"}
        )
        mocked_responses.add(
            responses.GET, EXPLORER_API_URL, json={"status": "1", "result": "Pass - Verified"}
        )

        result = run_deployment(
            toolchain_config,
            "mumbai",
            verify=True,
            contracts_dir=contracts_dir,
            artifacts_dir=artifacts_dir,
        )

        assert result.status is DeploymentStatus.CONFIRMED
        explorer_calls = [c for c in mocked_responses.calls if c.request.url.startswith(EXPLORER_API_URL)]
        assert len(explorer_calls) == 2

    def test_unreachable_endpoint(
        self, mocked_responses, toolchain_config, contracts_dir, artifacts_dir, fake_solc, capsys
    ):
        """Test that an unreachable endpoint raises without a success line."""
        with pytest.raises(RPCError):
            run_deployment(
                toolchain_config, "mumbai", contracts_dir=contracts_dir, artifacts_dir=artifacts_dir
            )
        assert capsys.readouterr().out == ""


class TestMain:
    """Test the command line entry point."""

    def test_success_exit_code(self, project_dir, mumbai_environ, fake_node, fake_solc, capsys):
        """Test exit code 0 and exactly one success line."""
        assert main(["--network", "mumbai"]) == 0

        out = capsys.readouterr().out
        assert out.splitlines() == [SUCCESS_LINE]
        assert (project_dir / "artifacts" / "contracts" / "Twitter.sol" / "Twitter.json").exists()

    def test_unreachable_endpoint_exits_1(
        self, project_dir, mumbai_environ, mocked_responses, fake_solc, capsys, caplog
    ):
        """Test that network failures are logged and exit with 1."""
        with caplog.at_level(logging.ERROR):
            assert main([]) == 1

        assert "has been deployed" not in capsys.readouterr().out
        assert "Deployment failed" in caplog.text

    def test_malformed_key_exits_1_without_broadcast(
        self, project_dir, clean_env, monkeypatch, fake_node, fake_solc, capsys
    ):
        """Test that a malformed key fails before any transaction is sent."""
        monkeypatch.setenv("ALCHEMY_MUMBAI_URL", MUMBAI_URL)
        monkeypatch.setenv("MUMBAI_PRIVATE_KEY", "not-a-key")

        assert main([]) == 1
        assert fake_node.sent == []
        assert capsys.readouterr().out == ""

    def test_missing_key_exits_1_without_broadcast(
        self, project_dir, clean_env, monkeypatch, fake_node, fake_solc
    ):
        """Test that a missing key fails before any transaction is sent."""
        monkeypatch.setenv("ALCHEMY_MUMBAI_URL", MUMBAI_URL)

        assert main([]) == 1
        assert fake_node.calls == []

    def test_reverted_deployment_exits_1(
        self, project_dir, mumbai_environ, fake_node, fake_solc, capsys
    ):
        """Test that an on-chain failure exits with 1."""
        fake_node.receipt_status = "0x0"

        assert main([]) == 1
        assert capsys.readouterr().out == ""

    def test_reads_dotenv_in_cwd(self, project_dir, clean_env, fake_node, fake_solc, capsys):
        """Test that ./.env is picked up by default."""
        (project_dir / ".env").write_text(
            f"ALCHEMY_MUMBAI_URL={MUMBAI_URL}\nMUMBAI_PRIVATE_KEY={DEPLOYER_KEY}\n"
        )

        assert main([]) == 0
        assert capsys.readouterr().out.splitlines() == [SUCCESS_LINE]

    def test_unknown_contract_exits_1(self, project_dir, mumbai_environ, fake_node, fake_solc):
        """Test that a contract missing from the sources exits with 1."""
        assert main(["--contract", "Facebook"]) == 1
        assert fake_node.calls == []

    def test_timeout_exits_1(self, project_dir, mumbai_environ, fake_node, fake_solc, capsys):
        """Test that an unconfirmed deployment times out with exit code 1."""
        fake_node.pending_polls = 100

        assert main(["--timeout", "0"]) == 1
        assert capsys.readouterr().out == ""
