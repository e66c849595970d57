"""Test utilities."""
import argparse
import logging
import multiprocessing
from multiprocessing import synchronize
import os
import shutil
import stat
import tempfile
from typing import Any
from typing import Callable
import unittest

from qicert import configuration
from qicert._internal import constants
from qicert._internal import lock


def make_config(tempdir: str, backend: str = constants.NGINX,
                **kwargs: Any) -> configuration.NamespaceConfig:
    """Build a configuration whose every path lives under tempdir.

    The web server and certbot binaries are empty executable files, so
    they are found by the installation checks; tests mock
    `qicert.util.run_script` to keep them from running.

    :param str tempdir: directory holding the test tree
    :param str backend: ``nginx`` or ``apache``
    :param kwargs: options overriding the generated ones

    :rtype: qicert.configuration.NamespaceConfig

    """
    bin_dir = os.path.join(tempdir, 'bin')
    sites_available = os.path.join(tempdir, 'sites-available')
    sites_enabled = os.path.join(tempdir, 'sites-enabled')
    for directory in (bin_dir, sites_available, sites_enabled):
        os.makedirs(directory, exist_ok=True)

    values = dict(constants.CLI_DEFAULTS)
    values.update(
        backend=backend,
        name='example',
        tld='com',
        sites_available=sites_available,
        sites_enabled=sites_enabled if backend == constants.NGINX else None,
        server_binary=make_executable(os.path.join(bin_dir, backend)),
        service_name=backend,
        cert_tool_binary=make_executable(os.path.join(bin_dir, 'certbot')),
        webroot_base=os.path.join(tempdir, 'www'),
        challenge_dir=os.path.join(tempdir, 'www', '.well-known', 'challenge'),
        cert_store=os.path.join(tempdir, 'live'),
        logs_dir=os.path.join(tempdir, 'logs'),
    )
    values.update(kwargs)
    return configuration.NamespaceConfig(argparse.Namespace(**values))


def make_executable(path: str) -> str:
    """Create an empty executable file at path and return path."""
    with open(path, 'w'):
        pass
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR)
    return path


class TempDirTestCase(unittest.TestCase):
    """Base test class which sets up and tears down a temporary directory"""

    def setUp(self) -> None:
        """Execute before test"""
        self.tempdir = tempfile.mkdtemp()

    def tearDown(self) -> None:
        """Execute after test"""
        # Remove logging handlers that have been closed so they won't be
        # accidentally used in future tests.
        logging.shutdown()
        logging.getLogger().handlers = []

        shutil.rmtree(self.tempdir)


class ConfigTestCase(TempDirTestCase):
    """Test class which sets up a NamespaceConfig object for nginx."""
    backend = constants.NGINX

    def setUp(self) -> None:
        super().setUp()
        self.config = make_config(self.tempdir, backend=self.backend)


def _handle_lock(event_in: synchronize.Event, event_out: synchronize.Event, path: str) -> None:
    """
    Acquire a file lock on given path, then wait to release it. This worker is coordinated
    using events to signal when the lock should be acquired and released.
    :param multiprocessing.Event event_in: event object to signal when to release the lock
    :param multiprocessing.Event event_out: event object to signal when the lock is acquired
    :param path: the path to lock
    """
    my_lock = lock.LockFile(path)
    try:
        event_out.set()
        assert event_in.wait(timeout=20), 'Timeout while waiting to release the lock.'
    finally:
        my_lock.release()


def lock_and_call(callback: Callable[[], Any], path_to_lock: str) -> None:
    """
    Grab a lock on path_to_lock from a foreign process then execute the callback.
    :param callable callback: object to call after acquiring the lock
    :param str path_to_lock: path to the lock file
    """
    emit_event = multiprocessing.Event()
    receive_event = multiprocessing.Event()
    process = multiprocessing.Process(target=_handle_lock,
                                      args=(emit_event, receive_event, path_to_lock))
    process.start()

    # Wait confirmation that lock is acquired
    assert receive_event.wait(timeout=10), 'Timeout while waiting to acquire the lock.'
    try:
        # Execute the callback
        callback()
    finally:
        # Trigger unlock from foreign process
        emit_event.set()

        # Wait for process termination
        process.join(timeout=10)
    assert process.exitcode == 0
