# tests/test_lorentzian/conftest.py
"""分类器测试公共夹具"""

import pytest

from quantstream.lorentzian import PLorentzianClassification


SMALL_PARAMS = dict(
    neighbors_count=3,
    lookback_period=20,
    normalization_window=5,
    rsi_period=3,
    cci_period=4,
    adx_period=3,
    momentum_period=2,
    label_lookahead=2,
    label_threshold=0.005,
    min_confidence=0.5,
)


@pytest.fixture
def small_params() -> PLorentzianClassification:
    """小周期参数：特征在第 6 根就绪 (ADX 需要 2 * 3 根)"""
    return PLorentzianClassification(**SMALL_PARAMS)
