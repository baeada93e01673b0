#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for the pagestruct library.

This module centralizes the numeric thresholds used by the layout analyzers.
Almost every value here was hand-fit against sample documents; they are kept
as named constants so they can be recalibrated against a regression corpus
without touching the algorithms.

Constants are organized by category:
1. Type Definitions - Literal types shared across modules
2. Document Metrics - Defaults for font size and line spacing
3. Gap Analysis - Homogeneity ladder, thresholds and scoring weights
4. Visual Structure - Bucket density and column gap rules
5. Column Detection - Clustering, assignment and validation
6. Block Analysis - Boundary rule thresholds
7. Heading Hierarchy - Clustering tolerances and ratio bands
8. Configuration - Config file discovery
"""

from __future__ import annotations

from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

ColumnMethod = Literal["x-clustering", "visual-structure", "none"]
GapWeights = tuple[float, float, float]

# =============================================================================
# Document Metrics
# =============================================================================

DEFAULT_BASE_FONT_SIZE = 12.0  # Used when no valid font size is sampled
DEFAULT_MEDIAN_FONT_SIZE = 12.0
DEFAULT_MODE_SPACING = 12.0  # Default baseline-to-baseline spacing
DEFAULT_PARAGRAPH_GAP_THRESHOLD = 18.0
FONT_SIZE_ROUNDING_STEP = 0.5  # Font sizes are rounded to this step before taking the mode
SPACING_NOISE_FONT_MULTIPLIER = 10.0  # Spacings >= base * this are page-break noise
PARAGRAPH_THRESHOLD_SPACING_MULTIPLIER = 1.5
PARAGRAPH_THRESHOLD_FONT_MULTIPLIER = 1.2
DEFAULT_METRICS_SAMPLE_PAGES = 2  # Leading pages sampled for document metrics

# =============================================================================
# Gap Analysis
# =============================================================================

GAP_CLUSTER_COUNT = 2
GAP_CLUSTER_MAX_ITERATIONS = 10
GAP_CLUSTER_EPSILON = 0.01  # Center movement below which 2-means has converged

# Empty profile defaults
DEFAULT_NORMAL_GAP_MAX = 18.0
DEFAULT_PARAGRAPH_GAP_MIN = 24.0

# Homogeneity ladder (CV, std-dev and close-to-mean bounds per level)
HOMOGENEITY_CV_PERFECT = 0.02
HOMOGENEITY_STD_PERFECT = 0.1
HOMOGENEITY_CLOSE_PERFECT = 0.9
HOMOGENEITY_CV_HIGH = 0.05
HOMOGENEITY_STD_HIGH = 0.2
HOMOGENEITY_CLOSE_HIGH = 0.85
HOMOGENEITY_CV_MEDIUM = 0.10
HOMOGENEITY_CLOSE_MEDIUM = 0.80
HOMOGENEITY_IQR_MEDIUM = 0.15
HOMOGENEITY_CV_LOW = 0.15
HOMOGENEITY_CLOSE_LOW = 0.70
HOMOGENEITY_IQR_LOW = 0.20
HOMOGENEITY_CV_WEAK = 0.25
HOMOGENEITY_CLOSE_WEAK = 0.60
HOMOGENEITY_TAIL_WEAK = 0.1
HOMOGENEITY_CV_FAINT = 0.35
HOMOGENEITY_CLOSE_FAINT = 0.55
HOMOGENEITY_TAIL_FAINT = 0.15

HOMOGENEOUS_MIN_LEVEL = 0.8  # Level at or above which a profile is homogeneous
MOSTLY_HOMOGENEOUS_MIN_LEVEL = 0.4

# Thresholds per document type
HOMOGENEOUS_NORMAL_RATIO = 0.99
HOMOGENEOUS_PARAGRAPH_RATIO = 3.0
MOSTLY_HOMOGENEOUS_NORMAL_RATIO = 1.1
MOSTLY_HOMOGENEOUS_PARAGRAPH_RATIO = 2.0
BIMODAL_MIN_SEPARATION_RATIO = 0.3  # (large - small) / mean
BIMODAL_MIN_SMALL_CLUSTER_SHARE = 0.5
BIMODAL_NORMAL_RATIO = 1.2  # normal_gap_max = small center * this
BIMODAL_PARAGRAPH_RATIO = 0.8  # paragraph_gap_min = large center * this
THRESHOLD_SEPARATION_RATIO = 1.5  # paragraph_gap_min forced to normal_gap_max * this
GRADUAL_NORMAL_STD_RATIO = 0.5
GRADUAL_PARAGRAPH_STD_RATIO = 1.5

CONFIDENCE_HOMOGENEOUS = 0.9
CONFIDENCE_MOSTLY_HOMOGENEOUS = 0.75
CONFIDENCE_BIMODAL = 0.85
CONFIDENCE_GRADUAL = 0.7

# Neighbour outlier detection
GAP_OUTLIER_NEIGHBOR_RATIO = 1.5  # gap > both neighbours * this

# Paragraph boundary priority overrides
LIST_CONTINUATION_GAP_RATIO = 0.9  # of paragraph_gap_min
LIST_BREAK_GAP_RATIO = 0.8
SHORT_BLOCK_BREAK_GAP_RATIO = 0.9
FONT_CHANGE_RATIO = 0.2  # Relative font size change treated as significant
FONT_CHANGE_BREAK_GAP_RATIO = 0.7  # of paragraph_gap_min
FONT_CHANGE_NORMAL_GAP_RATIO = 1.2  # of normal_gap_max

# Homogeneous profile outliers
HOMOGENEOUS_OUTLIER_MEAN_RATIO = 3.0
HOMOGENEOUS_FONT_CHANGE_GAP_RATIO = 1.5  # of mean
MOSTLY_HOMOGENEOUS_OUTLIER_MEAN_RATIO = 2.0
MOSTLY_HOMOGENEOUS_HARD_BREAK_RATIO = 2.5

# Ambiguous band scoring
VISUAL_BAND_MIN_RANGE = 0.1
VISUAL_OUTLIER_BOOST_MAX = 0.3
SEMANTIC_HYPHEN = 0.0
SEMANTIC_CONTINUATION = 0.2
SEMANTIC_NEW_SENTENCE = 0.8
SEMANTIC_NEUTRAL = 0.5
LONG_BLOCK_DAMPING_LENGTH = 500
LONG_BLOCK_DAMPING_FACTOR = 0.8
LONG_BLOCK_DAMPING_VISUAL_MAX = 0.6
HEADING_AFTER_LONG_BLOCK_LENGTH = 300
HEADING_AFTER_LONG_BLOCK_GAP_RATIO = 1.5  # of mean
SHORT_NEXT_LINE_LENGTH = 30
NEIGHBOR_DEVIATION_BOOST = 0.2
NEIGHBOR_LARGE_RATIO = 2.0
NEIGHBOR_SMALL_RATIO = 0.7
SEQUENCE_LARGE_RATIO = 1.8
SEQUENCE_SMALL_RATIO = 0.6
CONTEXT_LENGTH_WEIGHT = 0.4
CONTEXT_FONT_WEIGHT = 0.4
CONTEXT_SEQUENCE_WEIGHT = 0.2
LIST_BLOCK_PREFIX_LENGTH = 50  # Characters of the open block checked for a list marker

# Contextual factor scores
LENGTH_SCORE_LONG_TO_SHORT = 0.7
LENGTH_SCORE_SHORT_TO_LONG = 0.6
LENGTH_SCORE_BOTH_LONG = 0.3
LONG_TO_SHORT_GAP_RATIO = 0.7  # of paragraph_gap_min
FONT_SCORE_LARGE_CHANGE = 0.3  # Relative font size change bands
FONT_SCORE_MODERATE_CHANGE = 0.15
FONT_SCORE_SMALL_CHANGE = 0.05
FONT_SCORE_LARGE = 0.8
FONT_SCORE_MODERATE = 0.6
FONT_SCORE_SMALL = 0.3
SEQUENCE_SCORE_HIGH = 0.8
SEQUENCE_SCORE_LOW = 0.2
SHORT_NEXT_SEMANTIC_BOOST = 0.7
VERY_SHORT_NEXT_SEMANTIC_BOOST = 0.6
VERY_SHORT_NEXT_GAP_RATIO = 1.5  # of normal_gap_max
LONG_TO_SHORT_SEMANTIC_GAP_RATIO = 0.8  # of paragraph_gap_min

# Default weights are shifted away from the visual score as homogeneity rises
DEFAULT_SCORE_WEIGHTS: GapWeights = (0.5, 0.3, 0.2)
DEFAULT_SCORE_WEIGHT_SLOPES: GapWeights = (-0.2, 0.15, 0.05)

# (visual, semantic, contextual) weights per document type
BIMODAL_SCORE_WEIGHTS: GapWeights = (0.6, 0.25, 0.15)
GRADUAL_SCORE_WEIGHTS: GapWeights = (0.4, 0.35, 0.25)
MOSTLY_HOMOGENEOUS_SCORE_WEIGHTS: GapWeights = (0.3, 0.4, 0.3)

# Combined score decision
SCORE_BREAK_THRESHOLD = 0.65
SCORE_CONTINUE_THRESHOLD = 0.35
SCORE_AGREE_VISUAL_HIGH = 0.7
SCORE_AGREE_SEMANTIC_HIGH = 0.6
SCORE_AGREE_VISUAL_LOW = 0.3
SCORE_AGREE_SEMANTIC_LOW = 0.4
SCORE_FONT_CHANGE_GAP_RATIO = 1.3  # of normal_gap_max
SCORE_DEFAULT_COMBINED_MIN = 0.5
SCORE_DEFAULT_VISUAL_MIN = 0.6

# =============================================================================
# Visual Structure
# =============================================================================

DEFAULT_VIEWPORT_WIDTH = 800.0
DEFAULT_VIEWPORT_HEIGHT = 600.0
MIN_BUCKET_WIDTH = 10.0  # Pixels
BUCKET_WIDTH_FONT_RATIO = 0.5
Y_COVERAGE_QUANTUM = 5.0  # Pixels per Y coverage cell
ESTIMATED_CHAR_WIDTH_RATIO = 0.6  # Average glyph width as a fraction of font size

DENSE_AVERAGE_RATIO = 1.5  # line_count >= average * this
DENSE_COVERAGE_RATIO = 0.08
DENSE_SOME_COVERAGE_RATIO = 0.03
DENSE_MAX_DENSITY_RATIO = 0.3  # density >= max density * this
SPARSE_AVERAGE_RATIO = 0.7
SPARSE_COVERAGE_RATIO = 0.03

COLUMN_GAP_MIN_FONT_RATIO = 1.2
COLUMN_GAP_MIN_BUCKETS = 2
COLUMN_GAP_WIDE_FONT_RATIO = 2.5  # Wide enough to qualify without dense neighbours
COLUMN_GAP_PROXIMITY_FONT_RATIO = 2.0  # is_column_gap boundary tolerance

# =============================================================================
# Column Detection
# =============================================================================

DEFAULT_X_TOLERANCE = 3.0  # Floor for x clustering tolerance
X_TOLERANCE_FONT_RATIO = 2.0
DEFAULT_MIN_LINES_PER_COLUMN = 3
DEFAULT_MIN_COLUMN_LINE_FRACTION = 0.05
COLUMN_RIGHT_EDGE_PERCENTILE = 0.9
COLUMN_RIGHT_MARGIN_FONT_RATIO = 0.5

OVERLAP_LINE_WEIGHT = 0.7  # horizontal = overlap/line * 0.7 + overlap/column * 0.3
OVERLAP_COLUMN_WEIGHT = 0.3
HORIZONTAL_SCORE_WEIGHT = 0.7
PROXIMITY_SCORE_WEIGHT = 0.3
PROXIMITY_NEAR_FONT_RATIO = 3.0
PROXIMITY_MEDIUM_FONT_RATIO = 10.0
PROXIMITY_NEAR_SCORE = 1.0
PROXIMITY_MEDIUM_SCORE = 0.7
PROXIMITY_FAR_SCORE = 0.3
PROXIMITY_UNKNOWN_SCORE = 0.5
DEFAULT_COLUMN_ASSIGNMENT_MIN_SCORE = 0.40
NEAREST_COLUMN_WIDTH_RATIO = 2.0  # Fallback assignment limit in column widths

DEFAULT_COLUMN_OVERLAP_RATIO = 0.5  # Share of a line inside a visual span
COLUMN_MIN_GAP_FONT_RATIO = 1.5  # Closer columns are flagged but kept
FIND_COLUMN_MIN_OVERLAP_RATIO = 0.3

# =============================================================================
# Block Analysis
# =============================================================================

ZERO_GAP_SUBSTITUTE = 0.1  # Same-line continuation
SHORT_TEXT_MAX = 150
SHORT_TEXT = 100
VERY_SHORT_TEXT = 50
MEDIUM_TEXT = 200
LONG_TEXT = 300

INTRA_BLOCK_GAP_RATIO = 3.0  # gap >= average in-block gap * this
BLANK_LINE_FONT_RATIO = 8.0  # gap >= font size * this
SHORT_BLOCK_FONT_CHANGE_RATIO = 0.15
PARAGRAPH_TO_HEADING_GAP_RATIO = 1.5  # of mean
BOLD_HEADING_GAP_RATIO = 0.5  # of mean
PLAIN_HEADING_GAP_RATIO = 0.5
PLAIN_HEADING_SHORT_GAP_RATIO = 0.3  # Used when the candidate is very short
NEXT_PARAGRAPH_MIN_LENGTH = 50
LINE_FREE_SPACE_REFERENCE = 500.0  # Nominal line width used to estimate trailing space
LINE_FREE_SPACE_HIGH = 0.3  # end / reference below this leaves lots of free space
LINE_FREE_SPACE_MODERATE = 0.5
BOUNDARY_SCORE_THRESHOLD = 1.0  # Sum of firing rule weights that closes a block

# =============================================================================
# Heading Hierarchy
# =============================================================================

HEADING_MIN_FONT_SIZE = 0.1
HEADING_MAX_FONT_SIZE = 1000.0
HEADING_VARIABILITY_RATIO = 0.2  # std-dev / mean above which grouping tightens
HEADING_TOLERANCE_TIGHT = 0.08
HEADING_TOLERANCE_LOOSE = 0.07
HEADING_ABS_DIFF_TIGHT = 0.15
HEADING_ABS_DIFF_LOOSE = 0.12
MAX_HEADING_LEVEL = 6
DEFAULT_HEADING_LEVEL = 2
OUTLINE_SIMILARITY_MIN = 0.7
OUTLINE_MAX_LEVEL_DIFF = 2
RELATIVE_MAX_LEVEL_DIFF = 1

# (minimum fontSize / baseFontSize ratio, level), checked in order
HEADING_RATIO_BANDS: tuple[tuple[float, int], ...] = (
    (2.0, 1),
    (1.5, 1),
    (1.3, 2),
    (1.2, 3),
    (1.1, 4),
    (1.05, 5),
)

# =============================================================================
# Document Structure
# =============================================================================

PAGE_BREAK_PREV_END_LENGTH = 50  # Characters kept from the end of the previous page
PAGE_BREAK_NEXT_START_LENGTH = 50

# =============================================================================
# Configuration
# =============================================================================

CONFIG_TOOL_NAME = "pagestruct"
CONFIG_FILENAMES = [".pagestruct.toml", ".pagestruct.yaml", ".pagestruct.yml", ".pagestruct.json"]
CONFIG_ENV_VAR = "PAGESTRUCT_CONFIG"  # Environment variable naming an explicit config file
