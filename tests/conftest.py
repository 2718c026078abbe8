import os

import pytest

TEST_OUT_DIR = os.path.join(os.path.dirname((os.path.realpath(__file__))), "test_out")
if not os.path.exists(TEST_OUT_DIR):
    os.makedirs(TEST_OUT_DIR)


def pytest_addoption(parser):
    parser.addoption("--quick", action="store_true", help="run 'quick' version of tests")
    parser.addoption("--seed", type=int, default=42, help="seed for random tests")


@pytest.fixture(scope="session")
def quick(request):
    return request.config.option.quick


@pytest.fixture(scope="session")
def seed(request):
    return request.config.option.seed


@pytest.fixture(scope="session")
def n_seeds(quick):
    return 3 if quick else 20
