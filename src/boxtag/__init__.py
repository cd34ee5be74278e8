"""
boxtag - A desktop tool for drawing and tagging UI element bounding boxes.

Built with PyQt6. Boxes can be drawn by hand or proposed by a YOLO model,
tagged as Button, Input, Radio or Dropdown, and exported as JSON.
"""

__version__ = "1.0.0"
__author__ = "boxtag Team"
