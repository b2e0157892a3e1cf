import sys
import os
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))
import pyarc
import time

# Number of objects to allocate
N = 200000


class StandardObject:
    def __init__(self):
        self.next = None


class Node:
    next = pyarc.strong()


def benchmark_standard():
    print(f"Plain Python: Allocating {N} objects...")
    start = time.time()
    objects = [StandardObject() for _ in range(N)]
    end = time.time()
    print(f"Plain Python Allocation Time: {end - start:.4f} seconds")

    print("Plain Python: Linking objects...")
    start = time.time()
    for prev, obj in zip(objects, objects[1:]):
        prev.next = obj
    end = time.time()
    print(f"Plain Python Link Time: {end - start:.4f} seconds")

    start = time.time()
    del objects
    end = time.time()
    print(f"Plain Python Release Time: {end - start:.4f} seconds")


def benchmark_pyarc(thread_safe):
    label = "pyarc (locked)" if thread_safe else "pyarc (single-threaded)"
    rt = pyarc.Runtime(pyarc.RuntimeConfig(thread_safe=thread_safe, record_events=False))

    print(f"\n{label}: Allocating {N} objects...")
    start = time.time()
    refs = [rt.new(Node()) for _ in range(N)]
    end = time.time()
    print(f"{label} Allocation Time: {end - start:.4f} seconds")

    print(f"{label}: Linking objects (retain per link)...")
    start = time.time()
    for prev, ref in zip(refs, refs[1:]):
        prev.payload.next = ref
    end = time.time()
    print(f"{label} Link Time: {end - start:.4f} seconds")

    # Release head first so each teardown only frees one link; releasing
    # the tail first would leave the whole chain to one cascading call.
    start = time.time()
    for ref in refs:
        ref.drop()
    end = time.time()
    print(f"{label} Release Time: {end - start:.4f} seconds")
    print(f"{label} blocks left: {len(rt.blocks())}")


if __name__ == "__main__":
    benchmark_standard()
    benchmark_pyarc(thread_safe=True)
    benchmark_pyarc(thread_safe=False)
