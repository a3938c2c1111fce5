import logging

import numpy as np
import pytest

from bubblegraph import Node
from bubblegraph.logging_utils import apply_debug_logging, debug_log_call, describe


def test_describe_summarizes_arrays_and_records():
    assert describe(np.zeros((400, 2))) == "<array 400x2 float64 range=[0, 0]>"
    assert describe(Node(id="n1", name="Hall", area=12, x=1.25, y=-3)) == "<Node n1 'Hall' a=12 @(1.2,-3.0)>"
    assert describe(list(range(10))).endswith("+4 more]")


def test_debug_log_call_logs_only_at_debug(caplog):
    logger = logging.getLogger("bubblegraph.tests.trace")

    @debug_log_call(logger)
    def double(value):
        return value * 2

    with caplog.at_level(logging.INFO, logger=logger.name):
        assert double(2) == 4
    assert caplog.records == []

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        assert double(3) == 6
    assert [record.getMessage() for record in caplog.records][-1].endswith("= 6")


def test_debug_log_call_reraises(caplog):
    logger = logging.getLogger("bubblegraph.tests.trace")

    @debug_log_call(logger)
    def boom():
        raise ValueError("bad")

    with caplog.at_level(logging.DEBUG, logger=logger.name), pytest.raises(ValueError):
        boom()


def test_apply_debug_logging_wraps_local_functions_once():
    def local(x):
        return x

    local.__module__ = "fake_module"
    namespace = {"__name__": "fake_module", "local": local, "imported": np.asarray, "skipped": local}

    assert apply_debug_logging(namespace, skip=["skipped"]) == 1
    assert namespace["local"] is not local
    assert namespace["imported"] is np.asarray
    assert apply_debug_logging(namespace, skip=["skipped"]) == 0
