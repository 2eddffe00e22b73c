import pytest

cp = pytest.importorskip("cupy")

from lifegl.core import cuda_engine, cuda_kernels  # noqa: E402
from lifegl.core.life_rules import Variant  # noqa: E402


class FailingModule:
    """RawModule stand-in whose compilation fails on lookup."""

    def __init__(self, code):
        self.code = code
        self.looked_up = []

    def get_function(self, name):
        self.looked_up.append(name)
        raise cp.cuda.compiler.CompileException("error: bad kernel", self.code, name, ())


class RecordingModule:
    instances = []

    def __init__(self, code):
        self.code = code
        self.looked_up = []
        RecordingModule.instances.append(self)

    def get_function(self, name):
        self.looked_up.append(name)
        return name


def test_compile_kernels_looks_up_every_kernel(monkeypatch) -> None:
    RecordingModule.instances = []
    monkeypatch.setattr(cuda_kernels.cp, 'RawModule', RecordingModule)
    kernels = cuda_kernels.compile_kernels()
    assert set(kernels) == set(cuda_kernels.KERNEL_NAMES)
    (module,) = RecordingModule.instances
    assert module.looked_up == list(cuda_kernels.KERNEL_NAMES)
    assert 'life_step' in module.code and 'field_to_rgba' in module.code


def test_kernel_compile_error_raised_at_construction(monkeypatch) -> None:
    monkeypatch.setattr(cuda_kernels.cp, 'RawModule', FailingModule)
    monkeypatch.setattr(cp.cuda.runtime, 'getDeviceCount', lambda: 1)
    monkeypatch.setattr(cp.cuda.runtime, 'getDeviceProperties', lambda device: {'name': b'Test GPU'})
    with pytest.raises(RuntimeError, match="CUDA initialization failed"):
        cuda_engine.CudaLifeEngine(16, 16, Variant.MONO)
