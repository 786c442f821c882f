"""Test the pyperclip clipboard wrapper."""

from unittest.mock import patch

import pyperclip
import pytest

from markview.clipboard import ClipboardError, ClipboardManager, set_clipboard_text


@patch('pyperclip.copy')
def test_copy_passes_text_through(mock_copy):
    set_clipboard_text("line one\nline two")
    mock_copy.assert_called_once_with("line one\nline two")


@patch('pyperclip.copy', side_effect=pyperclip.PyperclipException("no mechanism"))
def test_copy_failure_raises_clipboard_error(mock_copy):
    with pytest.raises(ClipboardError, match="no mechanism"):
        ClipboardManager.copy_text("text")
