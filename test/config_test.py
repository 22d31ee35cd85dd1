import pipebench as pb
import pytest


@pytest.fixture
def default_config():
    previous = pb.get_config()
    yield pb.set_config(pb.Config())
    pb.set_config(previous)


class TestConfig:

    def test_defaults(self):
        config = pb.Config()
        assert config.workers == 1
        assert config.cache_root is None
        assert config.separator == '_'
        assert not config.parallel

    def test_copy_and_update(self):
        config = pb.Config(workers=4)
        copy = pb.Config(config, cache_root='cache')
        assert copy.workers == 4
        assert copy.cache_root == 'cache'
        assert config.cache_root is None
        assert copy.parallel

    def test_unknown_setting(self):
        with pytest.raises(ValueError):
            pb.Config(threads=2)

    @pytest.mark.parametrize('workers', [0, -2, 1.5, True, '2'])
    def test_invalid_workers(self, workers):
        with pytest.raises(ValueError):
            pb.Config(workers=workers)

    def test_all_cores(self):
        assert pb.Config(workers=-1).parallel

    def test_load(self, tmp_path):
        filename = tmp_path / 'pipebench.toml'
        filename.write_text('[pipebench]\nworkers = 3\ncache_root = "cache"\n')
        config = pb.Config.load(str(filename))
        assert config.workers == 3
        assert config.cache_root == 'cache'
        assert config.backend == 'loky'

    def test_load_toplevel(self, tmp_path):
        filename = tmp_path / 'settings.toml'
        filename.write_text('separator = "/"\n')
        assert pb.Config.load(str(filename)).separator == '/'

    def test_to_json(self):
        assert '"workers": 2' in pb.Config(workers=2).to_json(sort_keys=True)


class TestDefaultConfig:

    def test_initializers(self, default_config):
        pb.set_workers(2)
        pb.set_cache_root('somewhere')
        assert pb.get_config().workers == 2
        assert pb.get_config().cache_root == 'somewhere'

    def test_explicit_wins(self, default_config):
        explicit = pb.Config(workers=3)
        assert pb.get_config(explicit) is explicit

    def test_separator_used_by_collapse(self, default_config):
        pb.get_config().update(separator='+')
        table = pb.apply_methods({'d': 1}, {'m': abs}, stage='s')
        table = pb.apply_methods(table, {'n': abs}, stage='t')
        assert pb.collapse(table).pipeline.iloc[0] == 'm+n'

    def test_reset(self, default_config):
        pb.set_workers(4)
        pb.set_cache_root('somewhere')
        config = pb.set_config(None)
        assert config is pb.get_config()
        assert config.workers == 1
        assert config.cache_root is None
