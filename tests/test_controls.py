# -*- coding: utf-8 -*-
"""
Unit tests for the controls module: key bindings and event handlers.
"""

from unittest.mock import MagicMock

import pytest

from picshow import controls
from picshow.config import INTERVAL_STEP


def bound_handlers(view):
    """Map each bound sequence to its handler."""
    return {call.args[0]: call.args[1] for call in view.window.bind.call_args_list}


@pytest.mark.parametrize("sequence, command, args", [
    ('<space>', 'toggle_playback', ()),
    ('<Right>', 'advance_next', ()),
    ('<Left>', 'advance_previous', ()),
    ('s', 'toggle_star_current', ()),
    ('u', 'unstar_current', ()),
    ('v', 'toggle_starred_only_filter', ()),
    ('e', 'toggle_metadata_overlay', ()),
    ('=', 'adjust_interval', (INTERVAL_STEP,)),
    ('+', 'adjust_interval', (INTERVAL_STEP,)),
    ('-', 'adjust_interval', (-INTERVAL_STEP,)),
    ('t', 'cycle_transition_style', ()),
])
def test_key_bindings_call_controller(mock_view, sequence, command, args):
    controls.bind_controls(mock_view)

    bound_handlers(mock_view)[sequence](MagicMock())

    getattr(mock_view.controller, command).assert_called_once_with(*args)


@pytest.mark.parametrize("sequence", ['q', 'Q', '<Escape>'])
def test_quit_bindings(mock_view, sequence):
    controls.bind_controls(mock_view)

    bound_handlers(mock_view)[sequence](MagicMock())

    mock_view.quit.assert_called_once()


def test_configure_bound_to_resize(mock_view):
    controls.bind_controls(mock_view)

    assert bound_handlers(mock_view)['<Configure>'] is mock_view.on_resize


@pytest.mark.parametrize("delta, num, command", [
    (120, 0, 'advance_previous'),
    (-120, 0, 'advance_next'),
    (0, 4, 'advance_previous'),
    (0, 5, 'advance_next'),
])
def test_on_scroll(mock_view, delta, num, command):
    event = MagicMock(delta=delta, num=num)

    controls.on_scroll(mock_view, event)

    getattr(mock_view.controller, command).assert_called_once()


def test_on_click_toggles_playback(mock_view):
    controls.on_click(mock_view, MagicMock(y=100))
    mock_view.controller.toggle_playback.assert_called_once()


def test_on_click_in_hud_area_is_ignored(mock_view):
    controls.on_click(mock_view, MagicMock(y=550))
    mock_view.controller.toggle_playback.assert_not_called()


def test_open_folder_loads_selection(mock_view, mocker):
    mock_view.controller.configuration.last_folder = "/photos/old"
    ask = mocker.patch('picshow.controls.filedialog.askdirectory', return_value="/photos/new")

    controls.open_folder(mock_view)

    assert ask.call_args.kwargs['initialdir'] == "/photos/old"
    mock_view.controller.load_folder.assert_called_once_with("/photos/new")


def test_open_folder_cancelled(mock_view, mocker):
    mocker.patch('picshow.controls.filedialog.askdirectory', return_value="")

    controls.open_folder(mock_view)

    mock_view.controller.load_folder.assert_not_called()


def test_toggle_fullscreen(mock_view):
    controls.toggle_fullscreen(mock_view)

    assert mock_view.is_fullscreen is True
    mock_view.window.attributes.assert_called_once_with('-fullscreen', True)


def test_toggle_always_on_top(mock_view):
    controls.toggle_always_on_top(mock_view)
    controls.toggle_always_on_top(mock_view)

    assert mock_view.always_on_top is False
    mock_view.window.attributes.assert_called_with('-topmost', False)


def test_toggle_show_full_hud(mock_view):
    controls.toggle_show_full_hud(mock_view)

    assert mock_view.show_full_hud is True
    mock_view.render.assert_called_once()
