"""End-to-end tests for the command line."""

import pytest
import yaml

from nginx2traefik import __version__, cli

INGRESS = """\
apiVersion: networking.k8s.io/v1
kind: Ingress
metadata:
  name: web
  namespace: default
  annotations:
    nginx.ingress.kubernetes.io/limit-rps: "10"
    nginx.ingress.kubernetes.io/proxy-read-timeout: "60"
spec:
  ingressClassName: nginx
  rules:
    - host: app.example.com
      http:
        paths:
          - path: /
            pathType: Prefix
            backend:
              service:
                name: web
                port:
                  number: 80
"""


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "ingress.yaml").write_text(INGRESS)
    return tmp_path


def _exit_code(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


class TestArguments:

    def test_source_required(self, workdir):
        assert _exit_code([]) == 2

    def test_cluster_excludes_files(self, workdir):
        assert _exit_code(["--cluster", "--ingress-file", "ingress.yaml"]) == 2

    def test_version(self, capsys):
        assert _exit_code(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_missing_ingress_file(self, workdir, capsys):
        assert _exit_code(["--ingress-file", "nope.yaml"]) == 1
        assert "Ingress file not found" in capsys.readouterr().err

    def test_missing_directory(self, workdir):
        assert _exit_code(["--from-dir", "nope"]) == 1

    def test_missing_config(self, workdir):
        assert _exit_code(["--ingress-file", "ingress.yaml", "--config", "nope.yaml"]) == 1

    def test_invalid_backend_protocol(self, workdir, capsys):
        assert _exit_code(["--ingress-file", "ingress.yaml", "--backend-protocol", "AJP"]) == 1
        assert "backend_protocol" in capsys.readouterr().err


class TestConversion:

    def test_writes_outputs_and_text_report(self, workdir, capsys):
        cli.main(["--ingress-file", "ingress.yaml"])

        out = workdir / "out"
        middlewares = list(yaml.safe_load_all((out / "middlewares.yaml").read_text()))
        assert [m["metadata"]["name"] for m in middlewares] == ["web-ratelimit"]
        routes = list(yaml.safe_load_all((out / "ingressroutes.yaml").read_text()))
        assert routes[0]["metadata"]["name"] == "web"
        assert (out / "report.yaml").exists()
        assert "ServersTransport" in (out / "warnings.txt").read_text()

        err = capsys.readouterr().err
        assert "Parsed ingresses: 1 (1 selected)" in err
        assert "Result: Manual action required" in err

    def test_from_dir_and_overrides(self, workdir):
        cli.main(["--from-dir", ".", "--output-dir", "gen",
                  "--backend-protocol", "GRPC", "--burst-multiplier", "2"])

        route = next(yaml.safe_load_all((workdir / "gen" / "ingressroutes.yaml").read_text()))
        assert route["metadata"]["name"] == "web-grpc"
        assert route["spec"]["routes"][0]["services"][0]["scheme"] == "h2c"
        mw = next(yaml.safe_load_all((workdir / "gen" / "middlewares.yaml").read_text()))
        assert mw["spec"]["rateLimit"]["burst"] == 20

    def test_config_file_exclude(self, workdir, capsys):
        (workdir / "nginx2traefik.yaml").write_text("exclude: [\"default/web\"]\n")
        assert _exit_code(["--ingress-file", "ingress.yaml"]) == 1
        assert "(0 selected)" in capsys.readouterr().err

    def test_table_report(self, workdir, capsys):
        cli.main(["--ingress-file", "ingress.yaml", "--table"])
        err = capsys.readouterr().err
        assert "Migration summary" in err


class TestCluster:

    def test_cluster_source(self, workdir, monkeypatch):
        seen = {}

        def fake_list(api_client, namespace):
            seen["namespace"] = namespace
            return [yaml.safe_load(INGRESS)]

        class FakeLookup:
            def __init__(self, api_client):
                seen["lookup"] = True

            def find_certificate_by_secret(self, namespace, secret_name):
                return None

        monkeypatch.setattr(cli, "load_kube_client", lambda context: object())
        monkeypatch.setattr(cli, "list_ingresses", fake_list)
        monkeypatch.setattr(cli, "KubeCertificateLookup", FakeLookup)

        cli.main(["--cluster", "-A"])

        assert seen == {"namespace": None, "lookup": True}
        assert (workdir / "out" / "ingressroutes.yaml").exists()

    def test_cluster_without_lookup(self, workdir, monkeypatch):
        monkeypatch.setattr(cli, "load_kube_client", lambda context: object())
        monkeypatch.setattr(cli, "list_ingresses", lambda api_client, namespace: [])
        monkeypatch.setattr(cli, "KubeCertificateLookup", None)

        # nothing listed: exits before converting
        assert _exit_code(["--cluster", "--no-cluster-lookup", "-n", "apps"]) == 1
