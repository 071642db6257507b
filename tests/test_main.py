# -*- coding: utf-8 -*-
"""
Unit tests for the __main__ module of picshow.

This module ensures that running the package as a script (`python -m picshow`)
correctly delegates to the main CLI function.
"""

import runpy


def test_main_entry_point(mocker):
    """
    Test that running the package as a script calls the cli.main function.

    This test uses runpy to execute the picshow.__main__ module, which
    is the correct way to test an `if __name__ == '__main__'` block.
    """
    mock_cli_main = mocker.patch('picshow.cli.main')

    runpy.run_module('picshow.__main__', run_name='__main__')

    mock_cli_main.assert_called_once()
