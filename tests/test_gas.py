from speedchain.gas import (
    GasConfig,
    calculate_intrinsic_gas,
    validate_gas_limit,
    validate_gas_price,
)


def test_default_config():
    config = GasConfig()
    assert config.intrinsic_gas == 21_000
    assert config.gas_per_byte == 4
    assert config.min_gas_price == 1_000_000_000
    assert config.block_gas_limit == 1_000_000


def test_intrinsic_gas_charges_forty_bytes():
    assert calculate_intrinsic_gas(GasConfig(intrinsic_gas=0, gas_per_byte=1)) == 40


def test_intrinsic_gas_without_byte_cost():
    assert calculate_intrinsic_gas(GasConfig(gas_per_byte=0)) == 21_000


def test_intrinsic_gas_exceeds_base():
    config = GasConfig()
    assert calculate_intrinsic_gas(config) > config.intrinsic_gas


def test_gas_price_bounds():
    config = GasConfig()
    assert validate_gas_price(config.min_gas_price, config) is True
    assert validate_gas_price(config.min_gas_price - 1, config) is False


def test_gas_limit_bounds():
    config = GasConfig()
    assert validate_gas_limit(config.intrinsic_gas, config) is True
    assert validate_gas_limit(config.block_gas_limit, config) is True
    assert validate_gas_limit(config.intrinsic_gas - 1, config) is False
    assert validate_gas_limit(config.block_gas_limit + 1, config) is False