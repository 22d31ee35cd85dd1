# -*- encoding: utf-8 -*-
"""
Visualization of benchmark results.
"""

import logging
logger = logging.getLogger(__name__)

import numbers

import matplotlib as mpl
import matplotlib.pyplot as plt

from .table import DATA, PIPELINE, RESULT, collapse, as_table


class PipelinePlot:
    """
    Plots scalar results of a benchmark table by pipeline.

    Every pipeline gets a box showing the distribution of its results over
    the datasets, and each dataset's result is drawn as a dot on top of it.
    Dots are colored by dataset, cycling through matplotlib's default
    color cycle.

    Args:
        table (BenchmarkTable): The table to plot. If it has stage columns,
            it is collapsed first (see :func:`pipebench.collapse`). All
            results must be numbers.
        ax (mpl.axes.Axes): Axes object to draw on. Uses pyplot default axes
            if not provided.
        sep (str): separator for collapsing, see :func:`pipebench.collapse`
        title (str): a title for the plot, or ``None``
        ylabel (str): label for the result axis
        legend (bool): whether to show a legend for the datasets

    Raises:
        TypeError: if the table contains results that are not numbers
    """

    def __init__(self, table, ax=None, sep=None, title=None, ylabel=RESULT,
                 legend=True):
        table = as_table(table)
        if list(table.columns) != [DATA, PIPELINE, RESULT]:
            table = collapse(table, sep=sep)
        bad = [type(r).__name__ for r in table[RESULT]
               if not isinstance(r, numbers.Real)]
        if bad:
            raise TypeError("Can only plot numeric results, found {}"
                            .format(', '.join(sorted(set(bad)))))
        self.table = table
        self.pipelines = list(dict.fromkeys(table[PIPELINE]))
        self.datasets = list(dict.fromkeys(table[DATA]))
        self._init_colormap()

        self.ax = plt.gca() if ax is None else ax
        self.fig = self.ax.figure
        self._draw()
        if title is not None:
            self.ax.set_title(title)
        if ylabel is not None:
            self.ax.set_ylabel(ylabel)
        if legend and self.datasets:
            self.ax.legend(title=DATA)
        self.fig.tight_layout()

    def _init_colormap(self):
        props = mpl.rcParams['axes.prop_cycle']
        colors = [prop['color'] for prop in props]
        self.colormap = {dataset: colors[i % len(colors)]
                         for i, dataset in enumerate(self.datasets)}
        return self.colormap

    def _draw(self):
        positions = {pipeline: i + 1 for i, pipeline in enumerate(self.pipelines)}
        values = [self.table.loc[self.table[PIPELINE] == pipeline, RESULT]
                  .astype(float).tolist() for pipeline in self.pipelines]
        if self.pipelines:
            self.ax.boxplot(values, positions=list(positions.values()),
                            showfliers=False)
        for dataset in self.datasets:
            rows = self.table[self.table[DATA] == dataset]
            self.ax.scatter([positions[p] for p in rows[PIPELINE]],
                            rows[RESULT].astype(float),
                            color=self.colormap[dataset], label=dataset,
                            zorder=3)
        self.ax.set_xticks(list(positions.values()))
        self.ax.set_xticklabels(self.pipelines, rotation=90)
        logger.debug("Plotted %d pipelines for %d datasets",
                     len(self.pipelines), len(self.datasets))

    def show(self):
        plt.show()

    def save(self, fname, **kwargs):
        self.fig.savefig(fname, **kwargs)
