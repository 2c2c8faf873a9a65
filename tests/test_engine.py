import logging
import threading
import unittest

from netbridge.channel import EventChannel
from netbridge.ethernet import BROADCAST_MAC, EthernetFrame
from netbridge.events import IngressError, LocalFrame, RemoteFrame, Source
from netbridge.engine import ForwardingEngine
from netbridge.status import BridgeStatus

from tests.fakes import FakeClock, FakeLink, FakeTransport, make_frame

A = ("10.0.0.1", 8889)
B = ("10.0.0.2", 8889)
C = ("10.0.0.3", 8889)
MAC_A = "aa:bb:cc:dd:ee:01"
MAC_B = "aa:bb:cc:dd:ee:02"
MAC_C = "aa:bb:cc:dd:ee:03"
MAC_LOCAL = "52:54:00:00:00:10"


def remote(src: str, addr, dst: str = MAC_LOCAL, payload: bytes = b"in") -> RemoteFrame:
    return RemoteFrame(EthernetFrame.from_bytes(make_frame(dst, src, payload=payload)), addr)


def local(dst: str, payload: bytes = b"out") -> LocalFrame:
    return LocalFrame(EthernetFrame.from_bytes(make_frame(dst, MAC_LOCAL, payload=payload)))


class EngineTestCase(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.link = FakeLink()
        self.transport = FakeTransport()
        self.status = BridgeStatus("tap-test", "tap")
        self.engine = ForwardingEngine(
            self.link, self.transport, EventChannel(), clock=self.clock, status=self.status
        )


class TestRemoteFrames(EngineTestCase):
    def test_remote_frame_injected_and_learned(self):
        event = remote(MAC_A, A)
        self.engine.handle(event)
        self.assertEqual(self.link.written, [event.frame.data])
        self.assertEqual(self.engine.peers.lookup(MAC_A), A)

    def test_remote_frame_injected_regardless_of_destination(self):
        self.engine.handle(remote(MAC_A, A, dst="de:ad:be:ef:00:00"))
        self.engine.handle(remote(MAC_B, B, dst=BROADCAST_MAC))
        self.assertEqual(len(self.link.written), 2)
        self.assertEqual(len(self.engine.peers), 2)

    def test_learning_tracks_most_recent_endpoint(self):
        sequence = [(MAC_A, A), (MAC_B, B), (MAC_A, C), (MAC_B, A), (MAC_A, B)]
        for mac, addr in sequence:
            self.engine.handle(remote(mac, addr))
        self.assertEqual(self.engine.peers.lookup(MAC_A), B)
        self.assertEqual(self.engine.peers.lookup(MAC_B), A)
        self.assertEqual(self.engine.stats["peers_learned"], 2)

    def test_link_write_failure_still_learns(self):
        self.link.fail_writes = True
        with self.assertLogs("NetBridge.engine", level="WARNING"):
            self.engine.handle(remote(MAC_A, A))
        self.assertEqual(self.engine.peers.lookup(MAC_A), A)
        self.assertEqual(self.engine.stats["tx_errors"], 1)

    def test_new_peer_logged(self):
        with self.assertLogs("NetBridge.engine", level="INFO") as cm:
            self.engine.handle(remote(MAC_A, A))
        self.assertTrue(any(line.startswith("INFO") and "new peer" in line for line in cm.output))

    def test_status_snapshot_published(self):
        self.engine.handle(remote(MAC_A, A))
        self.engine.handle(remote(MAC_A, B))
        self.assertEqual(self.status.peers(), [(MAC_A, B)])
        self.assertEqual(self.status.stats()["rx_remote"], 2)


class TestLocalFrames(EngineTestCase):
    def learn(self, *peers):
        for mac, addr in peers:
            self.engine.handle(remote(mac, addr))

    def test_known_unicast_scenario(self):
        self.learn((MAC_A, A))
        event = local(MAC_A)
        self.engine.handle(event)
        self.assertEqual(self.transport.sent, [(event.frame.data, A)])

    def test_known_unicast_ignores_other_peers(self):
        self.learn((MAC_A, A), (MAC_B, B), (MAC_C, C))
        event = local(MAC_B)
        self.engine.handle(event)
        self.assertEqual(self.transport.sent, [(event.frame.data, B)])

    def test_broadcast_scenario(self):
        self.learn((MAC_A, A), (MAC_B, B))
        event = local(BROADCAST_MAC)
        self.engine.handle(event)
        self.assertCountEqual(self.transport.sent, [(event.frame.data, A), (event.frame.data, B)])

    def test_broadcast_with_no_peers(self):
        self.engine.handle(local(BROADCAST_MAC))
        self.assertEqual(self.transport.sent, [])

    def test_unknown_unicast_dropped(self):
        self.learn((MAC_A, A))
        self.engine.handle(local("aa:bb:cc:dd:ee:99"))
        self.assertEqual(self.transport.sent, [])
        self.assertEqual(self.engine.stats["dropped_unknown"], 1)

    def test_multicast_treated_as_unknown_unicast(self):
        self.learn((MAC_A, A))
        self.engine.handle(local("33:33:00:00:00:01"))
        self.assertEqual(self.transport.sent, [])

    def test_send_failure_does_not_stop_fanout(self):
        self.learn((MAC_A, A), (MAC_B, B), (MAC_C, C))
        self.transport.failing = [B]
        event = local(BROADCAST_MAC)
        with self.assertLogs("NetBridge.engine", level="WARNING") as cm:
            self.engine.handle(event)
        self.assertEqual(len(cm.output), 1)
        self.assertCountEqual([addr for _, addr in self.transport.sent], [A, C])
        self.assertEqual(self.engine.peers.lookup(MAC_B), B)

    def test_local_frames_do_not_learn(self):
        self.engine.handle(local(BROADCAST_MAC))
        self.assertEqual(len(self.engine.peers), 0)
        self.assertNotIn(MAC_LOCAL, self.engine.peers)


class TestIngressErrors(EngineTestCase):
    def test_error_logged_without_state_change(self):
        self.engine.handle(remote(MAC_A, A))
        with self.assertLogs("NetBridge.engine", level="ERROR") as cm:
            self.engine.handle(IngressError("frame too short (3 bytes)", Source.REMOTE))
        self.assertIn("remote", cm.output[0])
        self.assertEqual(self.engine.peers.entries(), [(MAC_A, A)])
        self.assertEqual(self.engine.stats["ingress_errors"], 1)

    def test_unknown_event_type(self):
        with self.assertRaises(TypeError):
            self.engine.handle(object())


class TestEviction(EngineTestCase):
    def test_stale_peer_evicted_young_peer_survives(self):
        self.engine.handle(remote(MAC_A, A))
        self.clock.advance(31)
        self.engine.handle(remote(MAC_B, B))
        self.clock.advance(30)
        # second sweep fires on this event: A is 61s old, B is 30s old
        self.engine.handle(local(BROADCAST_MAC))
        self.assertNotIn(MAC_A, self.engine.peers)
        self.assertIn(MAC_B, self.engine.peers)
        self.assertEqual(self.transport.sent, [(local(BROADCAST_MAC).frame.data, B)])

    def test_sweep_runs_before_handling_event(self):
        self.engine.handle(remote(MAC_A, A))
        self.clock.advance(61)
        self.engine.handle(local(MAC_A))
        self.assertEqual(self.transport.sent, [])

    def test_sweep_at_most_once_per_interval(self):
        self.clock.advance(30)
        for _ in range(50):
            self.engine.handle(local(BROADCAST_MAC))
            self.clock.advance(0.1)
        self.assertEqual(self.engine.stats["sweeps"], 1)
        self.clock.advance(30)
        self.engine.handle(local(BROADCAST_MAC))
        self.assertEqual(self.engine.stats["sweeps"], 2)

    def test_no_sweep_before_interval(self):
        self.engine.handle(remote(MAC_A, A))
        self.clock.advance(29.9)
        self.assertFalse(self.engine.maybe_sweep(self.clock()))
        self.assertEqual(self.engine.stats["sweeps"], 0)

    def test_stale_entry_survives_until_sweep_fires(self):
        self.engine.handle(remote(MAC_A, A))  # t=0, last sweep t=0
        self.clock.advance(29)
        self.engine.handle(remote(MAC_B, B))
        self.clock.advance(2)  # sweep at t=31: nothing stale yet
        self.engine.handle(local(MAC_A))
        self.clock.advance(29)  # t=60: A is stale but next sweep is due at t=61
        self.engine.handle(local(MAC_A))
        self.assertEqual(len(self.transport.sent), 2)
        self.clock.advance(1)
        self.engine.handle(local(MAC_A))
        self.assertEqual(len(self.transport.sent), 2)
        self.assertNotIn(MAC_A, self.engine.peers)

    def test_send_failure_does_not_evict(self):
        self.engine.handle(remote(MAC_A, A))
        self.transport.failing = [A]
        with self.assertLogs("NetBridge.engine", level="WARNING"):
            for _ in range(3):
                self.engine.handle(local(MAC_A))
        self.assertIn(MAC_A, self.engine.peers)


class TestRunLoop(EngineTestCase):
    def test_run_until_stopped(self):
        channel = self.engine.channel
        stop = threading.Event()
        t = threading.Thread(target=self.engine.run)
        t.start()
        channel.put(remote(MAC_A, A), stop)
        channel.put(local(MAC_A), stop)
        channel.put(local(BROADCAST_MAC), stop)
        self.engine.stop()
        t.join(timeout=5)
        self.assertFalse(t.is_alive())
        self.assertTrue(self.engine.stopped)
        self.assertEqual(self.engine.peers.lookup(MAC_A), A)
        self.assertLessEqual(len(self.transport.sent), 2)


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    unittest.main(verbosity=2)
