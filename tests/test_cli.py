"""
Unit tests for configuration, target parsing and the command line.
Run with: pytest tests/test_cli.py -v
"""
import json

import pytest
from ipsweep.config import ScanConfig, build_config
from ipsweep.errors import ConfigurationError, FormatError
from ipsweep.main import main
from ipsweep.scanner import ScanMethod
from ipsweep.utils import infer_method, parse_ports, parse_target


class TestPortParser:
    """Test port parsing utility"""

    def test_parse_single_port(self):
        """Test single port"""
        assert parse_ports("80") == [80]

    def test_parse_multiple_ports(self):
        """Test comma-separated ports"""
        assert set(parse_ports("22,80,443")) == {22, 80, 443}

    def test_parse_range(self):
        """Test port range"""
        assert set(parse_ports("20-25")) == {20, 21, 22, 23, 24, 25}

    def test_parse_mixed(self):
        """Test mixed format"""
        assert set(parse_ports("22,80-82,443")) == {22, 80, 81, 82, 443}

    def test_parse_invalid_removed(self):
        """Test invalid ports are removed"""
        ports = parse_ports("80,99999,22,http")
        assert 99999 not in ports
        assert ports == [22, 80]


class TestTargetParser:
    """Test CLI target text"""

    def test_infer_method(self):
        """Method is guessed from the text shape"""
        assert infer_method("10.0.0.0/24") is ScanMethod.RANGE_ADDRESS
        assert infer_method("10.0.0.1-10.0.0.9") is ScanMethod.RANGE_ADDRESS
        assert infer_method("10.0.0.1,10.0.0.2") is ScanMethod.MULTI_ADDRESS
        assert infer_method("10.0.0.1") is ScanMethod.SINGLE_ADDRESS

    def test_parse_cidr(self):
        """CIDR text becomes a range target"""
        target = parse_target("10.0.0.0/30")
        assert target.method is ScanMethod.RANGE_ADDRESS
        assert target.block.size == 4

    def test_parse_range(self):
        """a-b text becomes a range target"""
        target = parse_target("10.0.0.9-10.0.0.1")
        assert target.block.first_address.address == "10.0.0.1"

    def test_parse_list(self):
        """Comma lists keep valid entries only"""
        target = parse_target("10.0.0.1, junk ,10.0.0.2")
        assert [a.address for a in target.addresses] == ["10.0.0.1", "10.0.0.2"]

    def test_parse_endless(self):
        """An explicit method is honored"""
        target = parse_target("10.0.0.1", ScanMethod.ENDLESS_DECREASE)
        assert target.method is ScanMethod.ENDLESS_DECREASE
        assert target.start_address.address == "10.0.0.1"

    def test_parse_invalid(self):
        """Malformed targets raise FormatError"""
        with pytest.raises(FormatError):
            parse_target("not-an-address")
        with pytest.raises(FormatError):
            parse_target("a,b,c")


class TestScanConfig:
    """Test Pydantic configuration validation"""

    def test_defaults(self):
        """Test default configuration"""
        config = ScanConfig()
        assert config.thread_count == 1
        assert config.ports is None
        assert config.check_port_open is True
        assert config.check_timeout == 300
        assert config.max_queue_size == 16

    def test_negative_threads(self):
        """Thread count is made positive"""
        config = ScanConfig(thread_count=-8)
        assert config.thread_count == 8
        assert config.max_queue_size == 128

    def test_invalid_timeout(self):
        """Test timeout validation"""
        with pytest.raises(ConfigurationError):
            build_config(check_timeout=0)

    def test_empty_ports(self):
        """Test empty ports list"""
        with pytest.raises(ConfigurationError):
            build_config(ports=[])

    def test_ports_folded(self):
        """Ports are folded into range with order kept"""
        assert ScanConfig(ports=[443, -1, 65616]).ports == [443, 65535, 80]


class TestMain:
    """Test the command line entry point"""

    def test_address_scan_to_file(self, tmp_path):
        """An address-only range scan writes every address"""
        output = tmp_path / "out.json"
        assert main(["-t", "10.0.0.0/30", "-c", "2", "-o", str(output)]) == 0
        data = json.loads(output.read_text())
        assert data["method"] == "RANGE_ADDRESS"
        assert sorted(data["results"]) == ["10.0.0.0", "10.0.0.1", "10.0.0.2", "10.0.0.3"]

    def test_port_scan_no_check(self, tmp_path):
        """--no-check reports every pair"""
        output = tmp_path / "out.json"
        assert main(["-t", "10.0.0.1,10.0.0.2", "-p", "22,80", "--no-check", "-o", str(output)]) == 0
        data = json.loads(output.read_text())
        assert len(data["results"]) == 4
        assert "10.0.0.2:80" in data["results"]

    def test_endless_with_limit(self, tmp_path):
        """--limit stops an endless scan"""
        output = tmp_path / "out.json"
        assert main(["-t", "10.0.0.1", "-m", "up", "--limit", "50", "-c", "2", "-o", str(output)]) == 0
        data = json.loads(output.read_text())
        assert len(data["results"]) == 50

    def test_limit_with_many_threads(self, tmp_path):
        """--limit holds even when many consumers race past it"""
        output = tmp_path / "out.json"
        assert main(["-t", "10.0.0.1", "-m", "up", "--limit", "5", "-c", "16", "-o", str(output)]) == 0
        data = json.loads(output.read_text())
        assert len(data["results"]) == 5
        assert len(set(data["results"])) == 5

    def test_bad_target(self):
        """A malformed target exits with an error code"""
        assert main(["-t", "999.1"]) == 2

    def test_bad_ports(self):
        """Ports that are all invalid are rejected"""
        assert main(["-t", "10.0.0.1", "-p", "http"]) == 2
