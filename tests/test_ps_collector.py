"""Tests for the ps collector"""
import json
import os
from datetime import timezone
from unittest.mock import Mock

import pytest

from collectors.errors import CommandTimeoutError, ExecutionError, SerializationError
from collectors.ps import PSCollector, build_command, register
from config import Config
from metrics.accumulator import MemoryAccumulator
from metrics.models import ExecutionSpec, Snapshot
from metrics.registry import CollectorRegistry
from utils.command import CommandRunner


PS_OUTPUT = (
    b"    1     0 systemd  /sbin/init splash   1 12345 167890  0.1  0.0 root  Ss\n"
    b"  123     1 bash     -c sleep            4  1024   2048  1.50 0.25 root  S\n"
    b"  bad line\n"
    b"  777     1 cron     /usr/sbin/cron -f   1  abc    8000  0.0  0.0 root  Ss\n"
)


def make_runner(output: bytes = PS_OUTPUT, error: Exception = None) -> Mock:
    runner = Mock(spec=CommandRunner)
    if error is not None:
        runner.run.side_effect = error
    else:
        runner.run.return_value = output
    return runner


class TestBuildCommand:
    def test_default_command(self):
        assert build_command(ExecutionSpec()) == (
            "/bin/ps -axo pid=,ppid=,comm=,args=,nlwp=,rss=,vsz=,%mem=,%cpu=,ruser=,stat="
        )


class TestPSCollector:
    """Test collection and gathering"""

    def setup_method(self):
        self.acc = MemoryAccumulator()

    def test_metadata(self):
        collector = PSCollector(runner=make_runner())

        assert collector.name == "ps"
        assert collector.description == "Read information about the processes running on the host."
        assert '#timeout = "5s"' in collector.sample_config

    def test_timeout_from_config(self):
        runner = make_runner()
        collector = PSCollector(Config(timeout="250ms"), runner=runner)

        collector.collect()

        runner.run.assert_called_once_with(build_command(collector.spec), 0.25)

    def test_default_timeout(self):
        assert PSCollector(runner=make_runner()).spec.timeout == 5.0

    def test_collect_skips_bad_lines(self):
        snapshot = PSCollector(runner=make_runner()).collect()

        assert [r.pid for r in snapshot] == [1, 123]
        assert snapshot.records[1].args == "-c sleep"

    def test_collect_empty_output(self):
        snapshot = PSCollector(runner=make_runner(b"")).collect()
        assert len(snapshot) == 0

    def test_collect_invalid_utf8(self):
        output = b"  9 1 app  app \xff\xfe  1 10 20 0.0 0.0 root R\n"
        snapshot = PSCollector(runner=make_runner(output)).collect()

        assert snapshot.records[0].args == "app \ufffd\ufffd"

    def test_gather_records_one_metric(self):
        PSCollector(runner=make_runner()).gather(self.acc)

        assert self.acc.errors == []
        assert len(self.acc.metrics) == 1

        metric = self.acc.metrics[0]
        assert metric.name == "ps"
        assert metric.tags == {"plugin": "ps"}
        assert list(metric.fields) == ["fields"]
        assert metric.timestamp.tzinfo == timezone.utc

        payload = json.loads(metric.fields["fields"])
        assert payload[1] == {
            "pid": 123, "ppid": 1, "command": "bash", "args": "-c sleep", "threads": 4,
            "rss": 1024, "vsize": 2048, "mem": 1.5, "cpu": 0.25, "user": "root", "status": "S",
        }

    def test_gather_empty_snapshot_is_success(self):
        PSCollector(runner=make_runner(b"")).gather(self.acc)

        assert self.acc.errors == []
        assert self.acc.metrics[0].fields == {"fields": "[]"}

    @pytest.mark.parametrize("error", [
        CommandTimeoutError("/bin/ps", 5.0),
        ExecutionError("/bin/ps exited with status 1", exit_code=1),
    ])
    def test_gather_failure_reports_error_once(self, error):
        collector = PSCollector(runner=make_runner(error=error))

        with pytest.raises(type(error)):
            collector.gather(self.acc)

        assert self.acc.metrics == []
        assert self.acc.errors == [error]

    def test_gather_reports_failed_wait(self):
        handle = Mock(pid=321)
        handle.wait.side_effect = ValueError("cannot wait")
        provider = Mock(**{"spawn.return_value": handle})
        collector = PSCollector(runner=CommandRunner(provider))

        with pytest.raises(ExecutionError):
            collector.gather(self.acc)

        handle.kill.assert_called_once_with()
        assert self.acc.metrics == []
        assert len(self.acc.errors) == 1

    def test_gather_serialization_failure(self):
        collector = PSCollector(runner=make_runner())
        collector.collect = Mock(return_value=Mock(spec=Snapshot, **{
            "to_payload.side_effect": SerializationError("boom"),
        }))

        with pytest.raises(SerializationError):
            collector.gather(self.acc)

        assert self.acc.metrics == []
        assert len(self.acc.errors) == 1

    def test_independent_cycles(self):
        runner = make_runner()
        collector = PSCollector(runner=runner)

        first = collector.collect()
        runner.run.return_value = b""
        second = collector.collect()

        assert len(first) == 2
        assert len(second) == 0


class TestRegister:
    def test_register_adds_factory(self):
        registry = CollectorRegistry(Config(timeout="2s"))
        register(registry)

        collector = registry.create("ps")

        assert isinstance(collector, PSCollector)
        assert collector.spec.timeout == 2.0


@pytest.mark.skipif(not os.path.exists("/bin/ps"), reason="requires /bin/ps")
class TestPSCollectorLive:
    """Run the real listing command"""

    def test_snapshot_contains_current_process(self):
        snapshot = PSCollector(Config(timeout="10s")).collect()

        pids = [r.pid for r in snapshot]
        assert os.getpid() in pids
        assert len(set(pids)) == len(pids)
