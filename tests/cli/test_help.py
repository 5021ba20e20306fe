import kassoc


def test_help_in_root(invoke, real_run):
    result = invoke(['--help'])

    assert result.exit_code == 0
    assert not real_run.called

    assert 'Usage: kassoc [OPTIONS]' in result.output
    assert '  run ' in result.output


def test_help_in_run(invoke, real_run):
    result = invoke(['run', '--help'])

    assert result.exit_code == 0
    assert not real_run.called

    assert 'Usage: kassoc run [OPTIONS]' in result.output
    assert ' --namespace' in result.output
    assert ' --all-namespaces' in result.output
    assert ' --workers' in result.output
    assert ' --reconcile-timeout' in result.output
    assert ' --log-format' in result.output


def test_version(invoke, real_run):
    result = invoke(['--version'])

    assert result.exit_code == 0
    assert not real_run.called
    assert result.output.startswith('kassoc, version ')
    assert (kassoc.__version__ or 'unknown') in result.output
