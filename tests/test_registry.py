import threading

from state import LIVE_TRANSMISSION, LIVE_TRANSMISSION_FALLBACK, LiveNode


def _node(node_id, ts, **overrides):
  fields = dict(
    id=node_id,
    name="NODE-ONE",
    short_name="NO1",
    firmware="unknown",
    latitude=37.7749,
    longitude=-122.4194,
    timestamp=ts,
    topic="msh/US/2/e/LongFast/!a1b2c3d4",
    region="US",
    type=LIVE_TRANSMISSION,
  )
  fields.update(overrides)
  return LiveNode(**fields)


def test_upsert_overwrites_without_merge(registry, clock):
  registry.upsert("deadbeef", _node("deadbeef", clock(), snr=5.5, rssi=-80))
  registry.upsert("deadbeef", _node("deadbeef", clock() + 1, name="OTHER", type=LIVE_TRANSMISSION_FALLBACK))

  nodes = registry.snapshot()

  assert len(nodes) == 1
  assert nodes[0].name == "OTHER"
  assert nodes[0].snr is None
  assert nodes[0].rssi is None


def test_repeated_upsert_keeps_one_entry_with_later_timestamp(registry, clock):
  registry.upsert("deadbeef", _node("deadbeef", clock()))
  clock.advance(30)
  registry.upsert("deadbeef", _node("deadbeef", clock()))

  nodes = registry.snapshot()

  assert len(nodes) == 1
  assert nodes[0].timestamp == clock()


def test_snapshot_evicts_stale_entries(registry, clock):
  registry.upsert("00000001", _node("00000001", clock()))
  clock.advance(300)
  registry.upsert("00000002", _node("00000002", clock()))
  clock.advance(301)

  ids = {node.id for node in registry.snapshot()}

  assert ids == {"00000002"}
  assert len(registry) == 1


def test_entry_exactly_at_threshold_is_kept(registry, clock):
  registry.upsert("00000001", _node("00000001", clock()))
  clock.advance(600)
  assert [node.id for node in registry.snapshot()] == ["00000001"]


def test_eviction_is_deferred_until_read(registry, clock):
  registry.upsert("00000001", _node("00000001", clock()))
  clock.advance(3600)

  assert len(registry) == 1
  assert registry.snapshot() == []
  assert len(registry) == 0


def test_snapshot_never_returns_stale_entries_across_intervals(registry, clock):
  for step in range(40):
    node_id = f"{step % 7:08x}"
    registry.upsert(node_id, _node(node_id, clock()))
    clock.advance(97)
    for node in registry.snapshot():
      assert clock() - node.timestamp <= 600


def test_snapshot_returns_a_copy(registry, clock):
  registry.upsert("00000001", _node("00000001", clock()))
  nodes = registry.snapshot()
  nodes.clear()
  assert len(registry.snapshot()) == 1


def test_concurrent_writers_and_readers(registry, clock):
  errors = []

  def writer(offset):
    for i in range(200):
      node_id = f"{offset + i:08x}"
      registry.upsert(node_id, _node(node_id, clock()))

  def reader():
    try:
      for _ in range(200):
        registry.snapshot()
    except Exception as exc:  # pragma: no cover - failure path
      errors.append(exc)

  threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(2)]
  threads += [threading.Thread(target=reader) for _ in range(4)]
  for t in threads:
    t.start()
  for t in threads:
    t.join()

  assert errors == []
  assert len(registry.snapshot()) == 400


def test_payload_shape_for_decoded_and_fallback_nodes(clock):
  decoded = _node("1a2b3c4d", 1700000000.5, snr=6.25, rssi=-90, time=1699999990).to_payload()
  fallback = _node("deadbeef", 1700000000.5, type=LIVE_TRANSMISSION_FALLBACK).to_payload()

  assert decoded["shortName"] == "NO1"
  assert decoded["timestamp"] == 1700000000500
  assert decoded["snr"] == 6.25
  assert decoded["rssi"] == -90
  assert decoded["time"] == 1699999990
  assert "snr" not in fallback
  assert "rssi" not in fallback
  assert "time" not in fallback
  assert fallback["type"] == "live_transmission_fallback"
