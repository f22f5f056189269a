# tests/test_lorentzian/test_classifier.py
"""Lorentzian 分类器测试"""

import logging
import math

import pytest

from quantstream.core.exceptions import ShapeError
from quantstream.data import Bar
from quantstream.lorentzian import (
    ClassificationResult,
    ClassifierState,
    FeatureVector,
    Label,
    LorentzianClassifier,
    PatternEntry,
    Signal,
    lorentzian_distance,
    vote,
)


def entries(*labels: Label):
    return [PatternEntry(id=i, features=FeatureVector(), close=1.0, label=label) for i, label in enumerate(labels)]


def trend_bars(count: int, step: float):
    """每根收盘价按固定比例变化的 K 线"""
    bars = []
    close = 100.0
    for i in range(count):
        close *= 1 + step
        bars.append(Bar(
            timestamp=i * 60_000,
            open=close,
            high=close * 1.002,
            low=close * 0.998,
            close=close,
        ))
    return bars


class TestDistance:
    """Lorentzian 距离测试"""

    def test_known_value(self):
        assert lorentzian_distance([0.0, 0.0], [1.0, math.e - 1]) == pytest.approx(math.log(2) + 1)

    def test_identical_vectors(self):
        assert lorentzian_distance([1.0, -2.0, 3.0], [1.0, -2.0, 3.0]) == 0.0

    def test_symmetric(self):
        a, b = [0.5, -1.5, 2.0], [1.0, 0.0, -3.0]
        assert lorentzian_distance(a, b) == lorentzian_distance(b, a)

    def test_length_mismatch(self):
        with pytest.raises(ShapeError):
            lorentzian_distance([1.0, 2.0], [1.0])


class TestVote:
    """多数投票测试"""

    def test_clear_majority(self):
        """6 多 2 空 -> BUY, 置信度 0.75"""
        neighbors = entries(*[Label.BULLISH] * 6, *[Label.BEARISH] * 2)
        assert vote(neighbors, 0.6) == (Signal.BUY, 0.75)

    def test_bearish_majority(self):
        neighbors = entries(*[Label.BEARISH] * 6, *[Label.NEUTRAL] * 2)
        assert vote(neighbors, 0.6) == (Signal.SELL, 0.75)

    def test_tie_is_neutral(self):
        """4 多 4 空 -> NEUTRAL, 置信度 0.5"""
        neighbors = entries(*[Label.BULLISH] * 4, *[Label.BEARISH] * 4)
        assert vote(neighbors, 0.0) == (Signal.NEUTRAL, 0.5)

    def test_three_way_tie(self):
        neighbors = entries(*[Label.BULLISH] * 3, *[Label.BEARISH] * 3, *[Label.NEUTRAL] * 2)
        assert vote(neighbors, 0.0) == (Signal.NEUTRAL, 3 / 8)

    def test_below_min_confidence(self):
        """5 多 3 空, min_confidence=0.7 -> NEUTRAL, 置信度保留 0.625"""
        neighbors = entries(*[Label.BULLISH] * 5, *[Label.BEARISH] * 3)
        assert vote(neighbors, 0.7) == (Signal.NEUTRAL, 0.625)

    def test_confidence_equal_to_threshold(self):
        neighbors = entries(*[Label.BULLISH] * 3, Label.BEARISH)
        assert vote(neighbors, 0.75) == (Signal.BUY, 0.75)

    def test_neutral_majority(self):
        neighbors = entries(*[Label.NEUTRAL] * 5, *[Label.BULLISH] * 3)
        assert vote(neighbors, 0.6) == (Signal.NEUTRAL, 0.625)

    def test_empty(self):
        assert vote([], 0.5) == (Signal.NEUTRAL, 0.0)


class TestLifecycle:
    """状态机测试"""

    def test_initial_state(self, small_params):
        clf = LorentzianClassifier(small_params)

        assert clf.state is ClassifierState.UNINITIALIZED
        assert not clf.is_ready
        assert clf.signal is Signal.NEUTRAL
        assert clf.confidence == 0.0
        assert clf.value is None

    def test_state_progression(self, small_params, make_bars):
        """测试 WARMING -> PARTIALLY_POPULATED -> READY"""
        clf = LorentzianClassifier(small_params)
        states = []
        results = []
        for bar in make_bars(12):
            results.append(clf.on_bar(bar))
            states.append(clf.state)

        # 特征第 6 根就绪；lookahead=2、K=3，第 10 根时已标注 3 条
        assert states[:5] == [ClassifierState.WARMING] * 5
        assert states[5:9] == [ClassifierState.PARTIALLY_POPULATED] * 4
        assert states[9:] == [ClassifierState.READY] * 3

        assert all(r is None for r in results[:9])
        assert all(isinstance(r, ClassificationResult) for r in results[9:])

    def test_ready_is_monotonic(self, small_params, make_bars):
        clf = LorentzianClassifier(small_params)
        seen_ready = False
        for bar in make_bars(100):
            clf.on_bar(bar)
            if seen_ready:
                assert clf.is_ready
            seen_ready = clf.is_ready

        assert seen_ready

    def test_patterns_only_after_features_ready(self, small_params, make_bars):
        """测试特征就绪前不写入模式缓冲区"""
        clf = LorentzianClassifier(small_params)
        for bar in make_bars(5):
            clf.on_bar(bar)
        assert clf.historical_patterns_count == 0

        clf.on_bar(make_bars(6)[-1])
        assert clf.historical_patterns_count == 1

    def test_state_transitions_logged(self, small_params, make_bars, caplog):
        with caplog.at_level(logging.DEBUG, logger="quantstream"):
            clf = LorentzianClassifier(small_params)
            clf.on_bar_batch(make_bars(12))

        assert "partially_populated -> ready" in caplog.text

    def test_clear_and_replay(self, small_params, make_bars):
        """测试 clear() 后重放得到完全相同的结果"""
        clf = LorentzianClassifier(small_params)
        bars = make_bars(80)

        first = clf.on_bar_batch(bars)
        clf.clear()

        assert clf.state is ClassifierState.UNINITIALIZED
        assert clf.historical_patterns_count == 0
        assert clf.labeled_count == 0
        assert clf.signal is Signal.NEUTRAL
        assert clf.bars_seen == 0

        assert clf.on_bar_batch(bars) == first

    def test_update_arity(self, small_params):
        clf = LorentzianClassifier(small_params)
        with pytest.raises(ShapeError):
            clf.update(1.0, 2.0, 3.0)

    def test_update_matches_on_bar(self, small_params, make_bars):
        bars = make_bars(40)
        by_bar = LorentzianClassifier(small_params).on_bar_batch(bars)

        clf = LorentzianClassifier(small_params)
        by_update = [clf.update(b.open, b.high, b.low, b.close) for b in bars]
        assert by_update == by_bar

    def test_open_does_not_affect_output(self, small_params, make_bars):
        """测试 open 只占输入位置，不参与特征计算"""
        bars = make_bars(40)
        expected = LorentzianClassifier(small_params).on_bar_batch(bars)

        clf = LorentzianClassifier(small_params)
        shifted = [clf.update(b.open * 3 + 1, b.high, b.low, b.close) for b in bars]
        assert shifted == expected

    def test_record_without_open_rejected(self, small_params):
        """测试记录缺少 open 字段时报 ShapeError"""
        clf = LorentzianClassifier(small_params)
        with pytest.raises(ShapeError, match="open"):
            clf.on_bar({"high": 11.0, "low": 9.0, "close": 10.0})

        assert clf.bars_seen == 0


class TestClassification:
    """分类行为测试"""

    def test_uptrend_is_buy(self, small_params):
        """测试全部样本看涨时输出 BUY, 置信度 1"""
        clf = LorentzianClassifier(small_params)
        results = [r for r in clf.on_bar_batch(trend_bars(40, 0.01)) if r is not None]

        assert results
        assert all(r.signal is Signal.BUY and r.confidence == 1.0 for r in results)
        assert clf.signal is Signal.BUY

    def test_downtrend_is_sell(self, small_params):
        clf = LorentzianClassifier(small_params)
        results = [r for r in clf.on_bar_batch(trend_bars(40, -0.01)) if r is not None]

        assert all(r.signal is Signal.SELL for r in results)
        assert clf.confidence == 1.0

    def test_flat_is_neutral(self, small_params):
        clf = LorentzianClassifier(small_params)
        result = clf.on_bar_batch(trend_bars(40, 0.0))[-1]

        assert result.signal is Signal.NEUTRAL
        assert result.confidence == 1.0

    def test_result_fields(self, small_params, make_bars):
        clf = LorentzianClassifier(small_params)
        result = clf.on_bar_batch(make_bars(60))[-1]

        assert result.signal in (Signal.BUY, Signal.SELL, Signal.NEUTRAL)
        assert 0.0 <= result.confidence <= 1.0
        assert len(result.neighbor_ids) == small_params.neighbors_count
        assert clf.signal is result.signal
        assert clf.confidence == result.confidence

    def test_min_confidence_one(self, small_params, make_bars):
        """测试 min_confidence=1 时只有全票一致才输出方向"""
        clf = LorentzianClassifier(small_params.replace(min_confidence=1.0))
        for result in clf.on_bar_batch(make_bars(150)):
            if result is not None and result.signal is not Signal.NEUTRAL:
                assert result.confidence == 1.0

    def test_neighbors_exclude_unlabeled(self, small_params, make_bars):
        """测试最新的 label_lookahead 个条目永远不参与投票"""
        clf = LorentzianClassifier(small_params)
        for bar in make_bars(100):
            result = clf.on_bar(bar)
            if result is None:
                continue
            newest = {clf.patterns.ago(n).id for n in range(small_params.label_lookahead)}
            assert not newest & set(result.neighbor_ids)

        assert not clf.patterns.ago(0).label.is_set
        assert not clf.patterns.ago(1).label.is_set
        assert clf.patterns.ago(2).label.is_set

    def test_tie_break_by_id(self, small_params):
        """测试距离相同时 id 较小的条目优先"""
        clf = LorentzianClassifier(small_params)
        patterns = clf.patterns
        for rsi, label in [(1.0, Label.BULLISH), (1.0, Label.BEARISH), (-1.0, Label.BEARISH),
                           (1.0, Label.BULLISH), (0.5, Label.BULLISH)]:
            entry = patterns.append(FeatureVector(rsi=rsi), 100.0)
            patterns.set_label(entry, label)

        result = clf.classify(FeatureVector())

        assert result.neighbor_ids == (4, 0, 1)
        assert result.signal is Signal.BUY
        assert result.confidence == pytest.approx(2 / 3)

    def test_classify_does_not_mutate(self, small_params, make_bars):
        clf = LorentzianClassifier(small_params)
        clf.on_bar_batch(make_bars(40))
        before = (clf.historical_patterns_count, clf.labeled_count, clf.value)

        clf.classify(FeatureVector(rsi=1.0))
        assert (clf.historical_patterns_count, clf.labeled_count, clf.value) == before


class TestBatchAndMemory:
    """批量输入与内存测试"""

    def test_batch_matches_stream(self, small_params, make_bars):
        bars = make_bars(60)
        batch = LorentzianClassifier(small_params).on_bar_batch(bars)

        clf = LorentzianClassifier(small_params)
        assert [clf.on_bar(bar) for bar in bars] == batch

    def test_batch_with_outputs(self, small_params, make_bars):
        bars = make_bars(30)
        outputs = [None] * len(bars)
        clf = LorentzianClassifier(small_params)

        assert clf.on_bar_batch(bars, outputs) is outputs
        assert outputs[-1] is not None

    def test_batch_output_length_mismatch(self, small_params, make_bars):
        """测试输出长度不符时报错且不修改状态"""
        clf = LorentzianClassifier(small_params)
        with pytest.raises(ShapeError):
            clf.on_bar_batch(make_bars(10), [None] * 9)

        assert clf.bars_seen == 0
        assert clf.state is ClassifierState.UNINITIALIZED

    def test_buffer_bounded(self, small_params, make_bars):
        """测试模式缓冲区长度不超过 lookback_period，已标注数 = 容量 - lookahead"""
        clf = LorentzianClassifier(small_params)
        clf.on_bar_batch(make_bars(500))

        assert clf.historical_patterns_count == small_params.lookback_period
        assert clf.labeled_count == small_params.lookback_period - small_params.label_lookahead
        # 特征第 6 根开始写入，共 495 条，最新 id = 494
        assert clf.patterns.ago(0).id == 494

    def test_default_params(self):
        assert LorentzianClassifier().params.neighbors_count == 8
