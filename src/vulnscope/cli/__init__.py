# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later
