from __future__ import annotations

import instarand
from instarand.version import get_version


def test_unknown_labels_fold_into_other(metrics, registry):
    metrics.record_draw("lottery", produced=3)
    metrics.record_rejected("out_of_gas")

    assert registry.get_sample_value("instarand_engine_draws_total", {"kind": "other"}) == 1.0
    assert registry.get_sample_value("instarand_engine_values_total") == 3.0
    assert registry.get_sample_value("instarand_engine_rejected_total", {"reason": "other"}) == 1.0
    # only batch draws feed the size histogram
    assert registry.get_sample_value("instarand_engine_batch_size_count") == 0.0


def test_custom_namespace(registry):
    from instarand.metrics import Metrics

    m = Metrics(namespace="rng", subsystem="test", registry=registry)
    m.record_weak_caller_data()
    assert registry.get_sample_value("rng_test_weak_caller_data_total") == 1.0


def test_version_exposed():
    assert instarand.__version__ == get_version()
    assert instarand.__version__
