import pytest

from speedometer.models import FixStatus, SourceError, SpeedUnit, TimeFormat
from speedometer.pipeline import SpeedPipeline
from tests._factories import BrokenSink, make_fix


def kmh(v):
    return v / 3.6


def test_first_fix_seeds_smoother(pipeline):
    snap = pipeline.on_fix(make_fix(0, speed=None))
    assert snap.fix_status is FixStatus.ACCEPTED
    assert snap.display.speed_mps == 0.0
    assert pipeline.smoother.samples == (0.0,)


def test_ten_metres_in_one_second(pipeline):
    pipeline.on_fix(make_fix(0))
    snap = pipeline.on_fix(make_fix(1, north_m=10))
    # buffer is [0, 10]
    assert snap.display.speed_mps == pytest.approx(5.0, abs=1e-6)
    assert snap.display.avg_speed_mps == pytest.approx(10.0, abs=1e-6)
    assert pipeline.trip.distance_m == pytest.approx(10.0, abs=1e-6)
    assert pipeline.trip.time_s == 1.0


def test_rejected_fix_keeps_speed(pipeline):
    pipeline.on_fix(make_fix(0))
    before = pipeline.on_fix(make_fix(1, north_m=10))
    snap = pipeline.on_fix(make_fix(2, north_m=200, accuracy=75.0))

    assert snap.fix_status is FixStatus.REJECTED
    assert snap.display.accuracy_m == 75.0
    assert snap.display.speed_mps == before.display.speed_mps
    assert snap.display.max_speed_mps == before.display.max_speed_mps
    assert snap.display.latitude != before.display.latitude
    # baseline still the last accepted fix
    assert pipeline.last_fix.timestamp_ms == 1000


def test_rejected_first_fix_leaves_no_baseline(pipeline):
    snap = pipeline.on_fix(make_fix(0, accuracy=100.0))
    assert pipeline.last_fix is None
    assert snap.display.latitude is not None
    assert snap.display.speed_mps == 0.0


def test_zero_elapsed_time_updates_baseline_only(pipeline):
    pipeline.on_fix(make_fix(0))
    pipeline.on_fix(make_fix(0, north_m=100))
    assert pipeline.trip.time_s == 0.0
    assert pipeline.trip.distance_m == 0.0
    # next delta is measured from the new baseline
    pipeline.on_fix(make_fix(1, north_m=110))
    assert pipeline.trip.distance_m == pytest.approx(10.0, abs=1e-6)


def test_noise_does_not_accumulate(pipeline):
    pipeline.on_fix(make_fix(0))
    for t in range(1, 6):
        snap = pipeline.on_fix(make_fix(t, north_m=0.5 * (t % 2)))
    assert pipeline.trip.distance_m == 0.0
    assert snap.display.speed_mps == 0.0
    assert snap.display.avg_speed_mps == 0.0


def test_max_tracks_largest_smoothed_speed(pipeline):
    speeds = [5.0, 20.0, 3.0, 1.0, 0.5, 30.0, 2.0]
    seen = []
    last_max = 0.0
    for t, v in enumerate(speeds):
        snap = pipeline.on_fix(make_fix(t, speed=v))
        seen.append(snap.display.speed_mps)
        assert snap.display.max_speed_mps >= last_max
        last_max = snap.display.max_speed_mps
    assert last_max == max(seen)


def test_heading_retained_when_fix_has_none(pipeline):
    pipeline.on_fix(make_fix(0, heading=90.0))
    snap = pipeline.on_fix(make_fix(1, heading=None))
    assert snap.display.heading == 90.0


def test_orientation_updates(pipeline):
    assert pipeline.on_orientation(alpha=30.0).display.heading == 330.0
    assert pipeline.on_orientation(compass_heading=45.0, alpha=30.0).display.heading == 45.0
    assert pipeline.on_orientation().display.heading == 45.0
    # a later fix without heading keeps the compass value
    assert pipeline.on_fix(make_fix(0)).display.heading == 45.0


def test_alert_scenario_30_42_45_35_kmh(pipeline, sink):
    pipeline.set_speed_limit(40)
    # device speeds chosen so the running mean walks 30 -> 42 -> 45 -> 35 km/h
    targets = [30.0, 42.0, 45.0, 35.0]
    total = 0.0
    snaps = []
    for n, target in enumerate(targets, start=1):
        device = kmh(target) * n - total
        total += device
        snaps.append(pipeline.on_fix(make_fix(n, speed=device)))

    shown = [s.display.speed_mps * 3.6 for s in snaps]
    assert shown == pytest.approx(targets)
    assert [s.alert.is_active for s in snaps] == [False, True, True, False]
    assert snaps[3].alert.has_sounded is False
    assert sink.plays == 1


def test_unit_change_reevaluates_alert(pipeline, sink):
    pipeline.set_speed_limit(40)
    snap = pipeline.on_fix(make_fix(0, speed=12.0))  # 43.2 km/h, 26.8 mph
    assert snap.alert.is_active
    snap = pipeline.set_unit(SpeedUnit.MPH)
    assert not snap.alert.is_active
    assert not snap.alert.has_sounded
    snap = pipeline.set_unit(SpeedUnit.KMH)
    assert snap.alert.is_active
    assert sink.plays == 2


def test_limit_change_reevaluates_alert(pipeline, sink):
    pipeline.on_fix(make_fix(0, speed=12.0))
    assert not pipeline.snapshot().alert.is_active  # default limit 100 km/h
    assert pipeline.set_speed_limit(30).alert.is_active
    assert sink.plays == 1
    with pytest.raises(ValueError):
        pipeline.set_speed_limit(-1)


def test_reset_mid_trip(pipeline):
    pipeline.on_fix(make_fix(0, heading=10.0))
    pipeline.on_fix(make_fix(1, north_m=20, heading=20.0))
    before = pipeline.on_fix(make_fix(2, north_m=40))

    snap = pipeline.reset()
    assert snap.display.speed_mps == 0.0
    assert snap.display.max_speed_mps == 0.0
    assert snap.display.avg_speed_mps == 0.0
    assert snap.display.heading == 20.0
    assert snap.display.latitude == before.display.latitude
    assert pipeline.smoother.samples == (0.0,) * 10
    assert pipeline.last_fix is not None

    # the zero-seeded buffer dilutes the next candidate
    snap = pipeline.on_fix(make_fix(3, north_m=60))
    assert snap.display.speed_mps == pytest.approx(2.0, abs=1e-6)
    assert snap.display.avg_speed_mps == pytest.approx(20.0, abs=1e-6)


def test_reset_rearms_alert(pipeline, sink):
    pipeline.set_speed_limit(10)
    pipeline.on_fix(make_fix(0, speed=10.0))
    assert pipeline.snapshot().alert.is_active
    snap = pipeline.reset()
    assert not snap.alert.is_active
    pipeline.on_fix(make_fix(1, speed=40.0))
    assert sink.plays == 2


def test_toggle_units(pipeline):
    assert pipeline.snapshot().active_units == (SpeedUnit.KMH, SpeedUnit.MPH, SpeedUnit.MS)
    # current unit stays
    assert SpeedUnit.KMH in pipeline.toggle_unit(SpeedUnit.KMH).active_units
    assert pipeline.toggle_unit(SpeedUnit.MPH).active_units == (SpeedUnit.KMH, SpeedUnit.MS)
    assert pipeline.toggle_unit(SpeedUnit.MH).active_units == (SpeedUnit.KMH, SpeedUnit.MS, SpeedUnit.MH)
    with pytest.raises(ValueError):
        pipeline.set_unit(SpeedUnit.MPH)


def test_last_unit_cannot_be_hidden(config, sink, logger):
    config.active_units = [SpeedUnit.KMH]
    p = SpeedPipeline(config, sink, logger)
    assert p.toggle_unit(SpeedUnit.KMH).active_units == (SpeedUnit.KMH,)


def test_source_error_is_reported_and_kept(pipeline):
    pipeline.on_fix(make_fix(0, speed=5.0))
    snap = pipeline.on_source_error(SourceError.PERMISSION_DENIED)
    assert snap.error is SourceError.PERMISSION_DENIED
    assert snap.display.speed_mps == 5.0
    assert pipeline.on_fix(make_fix(1, speed=5.0)).error is SourceError.PERMISSION_DENIED
    assert pipeline.clear_error().error is None


def test_broken_sink_does_not_stop_pipeline(config, logger):
    p = SpeedPipeline(config, BrokenSink(), logger)
    p.set_speed_limit(10)
    snap = p.on_fix(make_fix(0, speed=20.0))
    assert snap.alert.is_active and snap.alert.has_sounded
    assert snap.display.speed_mps == 20.0


def test_snapshots_are_independent(pipeline):
    first = pipeline.on_fix(make_fix(0, speed=5.0))
    pipeline.toggle_unit(SpeedUnit.MH)
    pipeline.on_fix(make_fix(1, speed=15.0))
    assert first.display.speed_mps == 5.0
    assert SpeedUnit.MH not in first.active_units


def test_time_format_setting(pipeline):
    assert pipeline.snapshot().time_format is TimeFormat.H12_SEC
    assert pipeline.set_time_format("24h").time_format is TimeFormat.H24
