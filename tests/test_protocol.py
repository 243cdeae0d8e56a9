"""
Unit tests for the mount command channel.
"""

import threading
import unittest
from unittest.mock import patch

import deal

from tests.fake_link import ScriptedLink
from zwo_am_mount.api.core.exceptions import MountConnectionError, NotConnectedError
from zwo_am_mount.api.telescope.protocol import MountChannel


class TestMountChannel(unittest.TestCase):
    """Test suite for MountChannel"""

    def setUp(self):
        """Set up a channel over a scripted link"""
        self.link = ScriptedLink({":GR#": "12:30:00#", ":GVP#": "AM5#"})
        self.channel = MountChannel(self.link, first_read_timeout=3.1, read_timeout=0.1)

    # ========== Attachment Tests ==========

    def test_not_connected(self):
        """Test exchanging with no link attached"""
        with self.assertRaises(NotConnectedError):
            MountChannel().exchange(":GR#")

    def test_attach_detach(self):
        """Test attach and detach hand the link over"""
        channel = MountChannel()
        self.assertFalse(channel.is_open())

        channel.attach(self.link)
        self.assertTrue(channel.is_open())

        self.assertIs(channel.detach(), self.link)
        self.assertFalse(channel.is_open())
        self.assertIsNone(channel.detach())

    def test_command_must_start_with_colon(self):
        """Test malformed commands are refused"""
        with self.assertRaises(deal.PreContractError):
            self.channel.exchange("GR#")

    # ========== Exchange Tests ==========

    def test_reply_stops_at_terminator(self):
        """Test the reply is returned without the terminator"""
        self.assertEqual(self.channel.exchange(":GR#"), "12:30:00")
        self.assertEqual(self.link.written, [":GR#"])

    def test_bytes_after_terminator_are_left_for_drain(self):
        """Test trailing bytes do not leak into the next reply"""
        self.link.replies[":SC06/15/23#"] = "1Updating planetary data#"

        self.assertEqual(self.channel.exchange(":SC06/15/23#", max_reply_len=1), "1")
        self.assertEqual(self.channel.exchange(":GVP#"), "AM5")

    def test_stale_input_is_drained(self):
        """Test bytes queued before the command are discarded"""
        self.link.pending.extend(b"0#")

        self.assertEqual(self.channel.exchange(":GVP#"), "AM5")

    def test_high_bit_becomes_divider(self):
        """Test the degree sign is returned as ':'"""
        self.link.replies[":GD#"] = b"+45\xdf30:15#"

        self.assertEqual(self.channel.exchange(":GD#"), "+45:30:15")

    def test_max_reply_length(self):
        """Test reading stops when the buffer is full"""
        self.link.replies[":St+52*30#"] = "1"

        self.assertEqual(self.channel.exchange(":St+52*30#", max_reply_len=1), "1")
        self.assertEqual(self.link.read_timeouts[-1], 3.1)

    def test_timeout_returns_partial_reply(self):
        """Test a reply without terminator ends at the timeout"""
        self.link.replies[":GU#"] = "NG"

        self.assertEqual(self.channel.exchange(":GU#"), "NG")

    def test_no_reply(self):
        """Test a command the mount never answers"""
        self.assertEqual(self.channel.exchange(":GBu#"), "")

    def test_read_timeouts(self):
        """Test the first byte gets the long timeout and the rest the short one"""
        self.link.replies[":GT#"] = "0#"

        self.channel.exchange(":GT#")

        # drain (0.01), first byte, terminator
        self.assertEqual(self.link.read_timeouts, [0.01, 3.1, 0.1])

    def test_expect_reply_false_does_not_read(self):
        """Test a blind command returns right after the write"""
        self.link.replies[":Q#"] = "junk#"

        self.assertEqual(self.channel.exchange(":Q#", expect_reply=False), "")
        self.assertEqual(self.link.read_timeouts, [0.01])
        self.assertEqual(self.link.pending, bytearray(b"junk#"))

    @patch("zwo_am_mount.api.telescope.protocol.time.sleep")
    def test_post_write_delay(self, mock_sleep):
        """Test the delay runs between write and read"""
        self.link.replies[":MS#"] = "0"

        self.assertEqual(self.channel.exchange(":MS#", post_write_delay=0.1), "0")
        mock_sleep.assert_called_once_with(0.1)

    @patch("zwo_am_mount.api.telescope.protocol.time.sleep")
    def test_no_delay_by_default(self, mock_sleep):
        """Test no sleep without a delay"""
        self.channel.exchange(":GR#")
        mock_sleep.assert_not_called()

    def test_write_failure_propagates(self):
        """Test transport errors reach the caller"""
        self.link.fail_writes = True

        with self.assertRaises(MountConnectionError):
            self.channel.exchange(":GR#")

    # ========== Concurrency Tests ==========

    def test_exchanges_do_not_interleave(self):
        """Test concurrent callers each get their own reply"""
        self.link.replies[":GD#"] = "+10:00:00#"
        results = {":GR#": [], ":GD#": []}

        def worker(command):
            for _ in range(50):
                results[command].append(self.channel.exchange(command))

        threads = [threading.Thread(target=worker, args=(command,)) for command in results]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(set(results[":GR#"]), {"12:30:00"})
        self.assertEqual(set(results[":GD#"]), {"+10:00:00"})


if __name__ == "__main__":
    unittest.main()
