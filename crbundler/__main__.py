# SPDX-License-Identifier: GPL-3.0-or-later
# This file is part of CRBundler.
#
# CRBundler is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# CRBundler is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with CRBundler.  If not, see <https://www.gnu.org/licenses/>.

from crbundler.interfaces.cli.app import app

if __name__ == "__main__":
    app()
