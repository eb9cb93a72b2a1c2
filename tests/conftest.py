import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from tftparam.datatypes import DeviceGeometry, MeasurementKind, OutputSweep, TransferSweep

VTH = 2.0
MU0 = 10.0  # cm²/V·s
THETA = 0.05  # 1/V
VD_LINEAR = 0.1
VD_SATURATION = 20.0


def vg_grid(start=-10.0, stop=20.0, step=0.1):
    count = int(round((stop - start) / step)) + 1
    return np.round(np.linspace(start, stop, count), 2)


def transfer_current(vg, beta, vth=VTH, theta=THETA, i_threshold=1e-9, swing=0.25, leakage=1e-12):
    """Exponential below threshold, mobility-degraded linear regime above it."""
    vg = np.asarray(vg, dtype=float)
    x = vg - vth
    above = beta * np.clip(x, 0, None) / (1 + theta * np.clip(x, 0, None))
    below = i_threshold * 10 ** (np.clip(x, None, 0) / swing)
    return leakage + np.where(x > 0, i_threshold + above, below)


@pytest.fixture
def geometry():
    return DeviceGeometry(W=100e-6, L=20e-6, tox=100e-9)


@pytest.fixture
def beta(geometry):
    # mu0 * Cox * W / L * VD in A/V
    return MU0 * 1e-4 * geometry.cox * geometry.W / geometry.L * VD_LINEAR


@pytest.fixture
def linear_sweep(geometry, beta):
    vg = vg_grid()
    return TransferSweep(
        kind=MeasurementKind.LINEAR,
        sample_name="SampleA",
        source="SampleA_IDVG_Linear.xlsx",
        geometry=geometry,
        vg=vg,
        id=transfer_current(vg, beta),
        vds=VD_LINEAR,
    )


@pytest.fixture
def saturation_sweep(geometry):
    vg = vg_grid()
    return TransferSweep(
        kind=MeasurementKind.SATURATION,
        sample_name="SampleA",
        source="SampleA_IDVG_Sat.xlsx",
        geometry=geometry,
        vg=vg,
        id=transfer_current(vg, beta=1e-5, i_threshold=1e-6),
        vds=VD_SATURATION,
    )


@pytest.fixture
def output_sweep(geometry):
    vd = np.arange(0, 21, 1.0)
    gate_voltages = (0.0, 10.0, 20.0)
    vd_parts, id_parts, index_parts = [], [], []
    for index, vg in enumerate(gate_voltages):
        vov = max(vg - VTH, 0.0)
        id_ = np.where(vd < vov, 1e-7 * (vov * vd - vd ** 2 / 2), 1e-7 * vov ** 2 / 2) + 1e-12
        vd_parts.append(vd)
        id_parts.append(id_)
        index_parts.append(np.full(vd.size, index))
    return OutputSweep(
        kind=MeasurementKind.OUTPUT,
        sample_name="SampleA",
        source="SampleA_IDVD.xlsx",
        geometry=geometry,
        vd=np.concatenate(vd_parts),
        id=np.concatenate(id_parts),
        vg_index=np.concatenate(index_parts),
        gate_voltages=gate_voltages,
    )


def hysteresis_sweep(shift=0.0, start=0.0, stop=20.0, step=0.5, sample_name="SampleA"):
    """Square-law sweep up and back down; the backward branch has its Vth moved by `shift`."""
    forward = vg_grid(start, stop, step)
    backward = forward[::-1][1:]
    id_forward = 1e-7 * np.clip(forward - 3.0, 0, None) ** 2 + 1e-12
    id_backward = 1e-7 * np.clip(backward - 3.0 - shift, 0, None) ** 2 + 1e-12
    return TransferSweep(
        kind=MeasurementKind.HYSTERESIS,
        sample_name=sample_name,
        source=f"{sample_name}_IDVG_Hys.xlsx",
        vg=np.concatenate([forward, backward]),
        id=np.concatenate([id_forward, id_backward]),
        vds=VD_LINEAR,
        turning_index=forward.size - 1,
    )
