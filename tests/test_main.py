from main import main


def test_missing_config_file(tmp_path, capsys):
    assert main(['--config', str(tmp_path / 'absent.yaml')]) == 1
    assert "not found" in capsys.readouterr().out


def test_invalid_config_file(tmp_path, capsys):
    path = tmp_path / 'config.yaml'
    path.write_text("crawler:\n  user_agent: x\n  allowed_domains: []\n  seed_urls: ['https://a/']\n",
                    encoding='utf-8')
    assert main(['--config', str(path)]) == 1
    assert "invalid configuration" in capsys.readouterr().out


def test_max_pages_must_be_positive(tmp_path, capsys):
    path = tmp_path / 'config.yaml'
    path.write_text("crawler:\n  user_agent: x\n  allowed_domains: [a]\n  seed_urls: ['https://a/']\n",
                    encoding='utf-8')
    assert main(['--config', str(path), '--max-pages', '0']) == 1
    assert "--max-pages" in capsys.readouterr().out
