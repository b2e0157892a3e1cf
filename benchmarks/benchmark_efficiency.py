import time
import os
import psutil
import sys
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src'))
import pyarc
import gc


# Standard Python Object
class StandardObject:
    def __init__(self):
        self.slot = None


def get_memory_usage():
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / (1024 * 1024)  # MB


def benchmark_efficiency():
    NUM_OBJECTS = 1000000

    print(f"Benchmarking Efficiency with {NUM_OBJECTS} objects...\n")

    # --- Plain objects ---
    gc.collect()
    mem_before = get_memory_usage()
    start_time = time.time()

    std_objects = [StandardObject() for _ in range(NUM_OBJECTS)]

    end_time = time.time()
    mem_after = get_memory_usage()

    std_alloc_time = end_time - start_time
    std_mem_usage = mem_after - mem_before
    std_throughput = NUM_OBJECTS / std_alloc_time

    print(f"[Plain Python]")
    print(f"  Allocation Time: {std_alloc_time:.4f} s")
    print(f"  Throughput:      {std_throughput:,.0f} ops/s")
    print(f"  Memory Usage:    {std_mem_usage:.2f} MB")
    print(f"  Per Object:      {std_mem_usage * 1024 * 1024 / NUM_OBJECTS:.0f} bytes")

    # Cleanup
    del std_objects
    gc.collect()

    print("-" * 40)

    # --- pyarc ---
    rt = pyarc.Runtime(pyarc.RuntimeConfig(record_events=False))
    mem_before = get_memory_usage()

    # Each entry is a StrongRef plus its control block
    refs = []
    start_time = time.time()
    for _ in range(NUM_OBJECTS):
        refs.append(rt.new(StandardObject()))

    end_time = time.time()
    mem_after = get_memory_usage()

    arc_alloc_time = end_time - start_time
    arc_mem_usage = mem_after - mem_before
    arc_throughput = NUM_OBJECTS / arc_alloc_time

    print(f"[pyarc]")
    print(f"  Allocation Time: {arc_alloc_time:.4f} s")
    print(f"  Throughput:      {arc_throughput:,.0f} ops/s")
    print(f"  Memory Usage:    {arc_mem_usage:.2f} MB")
    print(f"  Per Object:      {arc_mem_usage * 1024 * 1024 / NUM_OBJECTS:.0f} bytes")

    start_time = time.time()
    for ref in refs:
        ref.drop()
    print(f"  Release Time:    {time.time() - start_time:.4f} s")

    print("-" * 40)
    print("Comparison (pyarc vs Plain Python):")
    print(f"  Throughput: {arc_throughput / std_throughput:.2f}x")
    print(f"  Memory:     {arc_mem_usage / std_mem_usage:.2f}x (Lower is better if < 1)")


if __name__ == "__main__":
    benchmark_efficiency()
