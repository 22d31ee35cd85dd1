import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

import pipebench as pb
import pytest

table = None


def setup_module():
    global table
    scaling = pb.MethodCollection('scaling', [('x', lambda v: v * 2),
                                              ('y', lambda v: v + 1)])
    offset = pb.MethodCollection('offset', [('plus', lambda v: v + 0.5),
                                            ('same', lambda v: v)])
    table = pb.apply_methods(pb.apply_methods({'a': 1, 'b': 10, 'c': 3},
                                              scaling), offset)


def teardown_module():
    plt.close('all')


class TestPipelinePlot:

    def test_plot(self):
        fig, ax = plt.subplots()
        plot = pb.PipelinePlot(table, ax=ax, title='Scores')
        assert plot.pipelines == ['x_plus', 'x_same', 'y_plus', 'y_same']
        assert plot.datasets == ['a', 'b', 'c']
        assert [t.get_text() for t in ax.get_xticklabels()] == plot.pipelines
        assert ax.get_title() == 'Scores'

    def test_colors(self):
        fig, ax = plt.subplots()
        plot = pb.PipelinePlot(table, ax=ax, legend=False)
        assert len(set(plot.colormap.values())) == 3

    def test_save(self, tmp_path):
        fig, ax = plt.subplots()
        plot = pb.PipelinePlot(pb.collapse(table, sep='/'), ax=ax)
        plot.save(str(tmp_path / 'plot.png'))
        assert (tmp_path / 'plot.png').exists()

    def test_non_numeric(self):
        with pytest.raises(TypeError):
            pb.PipelinePlot(table.map_results(str))
