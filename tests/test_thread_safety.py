import threading
import unittest
from pyarc import DoubleReleaseError, Runtime, RuntimeConfig, WeakRef


class Payload:
    def __init__(self):
        self.torn_down = threading.Event()

    def deinit(self):
        self.torn_down.set()


class TestThreadSafety(unittest.TestCase):
    def test_concurrent_retain_release(self):
        print("\nStarting multi-threaded retain/release test...")
        rt = Runtime(RuntimeConfig(thread_safe=True))
        root = rt.new(Payload())

        def worker():
            for _ in range(1000):
                ref = root.copy()
                ref.drop()

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(root.block.strong_count, 1)
        self.assertFalse(root.block.is_deallocated)
        root.drop()
        self.assertTrue(root.block.is_freed)

    def test_resolve_never_returns_torn_down_object(self):
        rt = Runtime(RuntimeConfig(thread_safe=True, record_events=False))
        failures = []

        for _ in range(200):
            payload = Payload()
            root = rt.new(payload)
            weak = WeakRef(root)
            start = threading.Barrier(2)

            def resolver():
                start.wait()
                for _ in range(50):
                    strong = weak.resolve()
                    if strong is None:
                        break
                    if payload.torn_down.is_set() or strong.block.is_deallocated:
                        failures.append(strong.block)
                    strong.drop()

            def releaser():
                start.wait()
                root.drop()

            threads = [threading.Thread(target=resolver), threading.Thread(target=releaser)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            self.assertTrue(payload.torn_down.is_set())
            self.assertIsNone(weak.resolve())
            weak.drop()

        self.assertEqual(failures, [])
        self.assertEqual(rt.blocks(), [])

    def test_concurrent_weak_refs(self):
        rt = Runtime()
        root = rt.new(Payload())

        def worker():
            for _ in range(500):
                with WeakRef(root) as w:
                    strong = w.resolve()
                    strong.drop()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(root.block.weak_count, 0)
        self.assertEqual(root.block.strong_count, 1)
        root.drop()

    def test_cross_runtime_teardown_does_not_deadlock(self):
        rt1 = Runtime()
        rt2 = Runtime()
        meet = threading.Barrier(2, timeout=5)
        completed = []

        class Owner:
            def __init__(self, child):
                self.child = child

            def deinit(self):
                # both teardowns are in flight before either cascades
                meet.wait()

        c = rt2.new(Payload(), label='c')
        d = rt1.new(Payload(), label='d')
        a = rt1.new(Owner(c.copy()), label='a')
        b = rt2.new(Owner(d.copy()), label='b')
        c.drop()
        d.drop()

        def drop(ref):
            ref.drop()
            completed.append(ref.label)

        threads = [threading.Thread(target=drop, args=(a,)),
                   threading.Thread(target=drop, args=(b,))]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        self.assertFalse(any(t.is_alive() for t in threads))
        self.assertEqual(sorted(completed), ['a', 'b'])
        self.assertTrue(c.block.is_freed)
        self.assertTrue(d.block.is_freed)
        self.assertEqual(rt1.blocks(), [])
        self.assertEqual(rt2.blocks(), [])

    def test_shared_reference_dropped_from_many_threads(self):
        rt = Runtime()
        keeper = rt.new(Payload())
        shared = keeper.copy()
        errors = []
        start = threading.Barrier(8)

        def worker():
            start.wait()
            try:
                shared.drop()
            except DoubleReleaseError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(errors), 7)
        self.assertEqual(keeper.block.strong_count, 1)
        self.assertFalse(keeper.block.is_deallocated)
        keeper.drop()

    def test_single_threaded_config(self):
        rt = Runtime(RuntimeConfig(thread_safe=False))
        ref = rt.new(Payload())
        copy = ref.copy()
        self.assertEqual(ref.block.strong_count, 2)
        copy.drop()
        ref.drop()
        self.assertTrue(ref.block.is_freed)
        self.assertIn('single-threaded', repr(rt))


if __name__ == '__main__':
    unittest.main()
