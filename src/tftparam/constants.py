EPSILON_0 = 8.854e-12  # F/m
EPSILON_R_SIO2 = 3.9
ELEMENTARY_CHARGE = 1.602e-19  # C
BOLTZMANN = 1.380649e-23  # J/K
ROOM_TEMPERATURE = 300.0  # K

# Floor used for absent or zero drain currents.
CURRENT_FLOOR = 1e-12


def oxide_capacitance(tox: float, epsilon_r: float = EPSILON_R_SIO2) -> float:
    """Gate oxide capacitance per unit area (F/m²) for a thickness `tox` in metres."""
    if tox <= 0:
        raise ValueError(f"Oxide thickness must be positive, got {tox}.")
    return epsilon_r * EPSILON_0 / tox


def thermal_voltage(temperature: float = ROOM_TEMPERATURE) -> float:
    """kT/q in volts."""
    return BOLTZMANN * temperature / ELEMENTARY_CHARGE
