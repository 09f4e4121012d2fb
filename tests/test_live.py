"""Integration tests against the public dneonline calculator.

Skipped automatically when the service cannot be reached.
"""

import pytest

from conftest import CALCULATOR_LIVE_URL
from wsdl2api.soap import BodyPayload, SoapClient
from wsdl2api.errors import SoapFault

pytestmark = pytest.mark.integration

NS = "http://tempuri.org/"


class TestLiveCalculator:
    @pytest.mark.parametrize("version", ["1.1", "1.2"])
    def test_add(self, calculator_available, version):
        with SoapClient(CALCULATOR_LIVE_URL, version, timeout=10) as client:
            result = client.call(f"{NS}Add", BodyPayload("Add", NS, {"intA": "5", "intB": "3"}), qualified=True)
        assert result.fields == {"AddResult": "8"}

    def test_bad_input_is_fault(self, calculator_available):
        with SoapClient(CALCULATOR_LIVE_URL, "1.1", timeout=10) as client:
            with pytest.raises(SoapFault):
                client.call(f"{NS}Add", BodyPayload("Add", NS, {"intA": "x", "intB": "3"}), qualified=True)
