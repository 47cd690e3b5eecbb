import smtplib
import unittest
from datetime import datetime
from unittest.mock import patch

import notifications

class TestTaskAssignmentNotification(unittest.TestCase):

    def test_message_content(self):
        message = notifications.build_task_assignment_message(
            "Ann", "ann@example.com", 12, "Fix login", "Users cannot log in", datetime(2024, 5, 1, 17, 30)
        )
        self.assertEqual(message["To"], "ann@example.com")
        self.assertEqual(message["Subject"], "New task assigned: Fix login")
        body = message.get_content()
        self.assertIn("Hello Ann,", body)
        self.assertIn("Description: Users cannot log in", body)
        self.assertIn("Due: 2024-05-01 17:30", body)
        self.assertIn("/tasks/12", body)

    @patch.object(notifications.config, "MAIL_HOST", "")
    def test_skipped_without_mail_settings(self):
        with patch("notifications.smtplib.SMTP_SSL") as smtp:
            self.assertFalse(notifications.send_task_assignment_notification("Ann", "ann@example.com", 1, "Task"))
            smtp.assert_not_called()

    @patch.multiple(notifications.config, MAIL_HOST="smtp.example.com", MAIL_USER="bot@example.com",
                    MAIL_PASSWORD="secret", MAIL_SECURE=True)
    def test_sends_over_ssl(self):
        with patch("notifications.smtplib.SMTP_SSL") as smtp:
            self.assertTrue(notifications.send_task_assignment_notification("Ann", "ann@example.com", 1, "Task"))
            server = smtp.return_value.__enter__.return_value
            server.login.assert_called_once_with("bot@example.com", "secret")
            server.send_message.assert_called_once()

    @patch.multiple(notifications.config, MAIL_HOST="smtp.example.com", MAIL_USER="bot@example.com",
                    MAIL_PASSWORD="secret", MAIL_SECURE=True)
    def test_delivery_failure_is_logged_not_raised(self):
        with patch("notifications.smtplib.SMTP_SSL", side_effect=smtplib.SMTPConnectError(421, "busy")):
            with self.assertLogs(notifications.logger, level="ERROR"):
                self.assertFalse(notifications.send_task_assignment_notification("Ann", "ann@example.com", 1, "Task"))

if __name__ == "__main__":
    unittest.main(verbosity=2)
