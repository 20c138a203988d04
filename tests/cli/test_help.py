def test_help_in_root(invoke):
    result = invoke(['--help'])

    assert result.exit_code == 0
    assert 'Usage: kubelink [OPTIONS]' in result.output
    assert '  version ' in result.output
    assert '  groups ' in result.output
    assert '  resources ' in result.output
    assert '  watch ' in result.output


def test_help_in_subcommand(invoke, mocker):
    client_cls = mocker.patch('kubelink._core.clients.Client')

    result = invoke(['watch', '--help'])

    assert result.exit_code == 0
    assert not client_cls.called

    # Enough to be sure this is not a root command help.
    assert 'Usage: kubelink watch [OPTIONS] GROUP VERSION RESOURCE' in result.output
    assert '  -n, --namespace' in result.output
    assert '  -l, --selector' in result.output
    assert '  --log-format' in result.output


def test_version_option(invoke):
    result = invoke(['--version'])
    assert result.exit_code == 0
    assert result.output.startswith('kubelink, version ')


def test_server_is_required(invoke, monkeypatch):
    monkeypatch.delenv('KUBELINK_SERVER')
    result = invoke(['version'])
    assert result.exit_code == 2
    assert "Missing option '--server'" in result.output
